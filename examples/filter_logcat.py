# Example: filter a saved logcat capture with the logsieve query language
#
# Usage:
#     adb logcat -d > capture.txt
#     python filter_logcat.py capture.txt "level:W -tag:chatty | is:crash"

import argparse
import logging
import sys

from logsieve import LogcatParser, LogStore
from logsieve.constants import DEFAULT_MAX_LOG_LINES


parser = argparse.ArgumentParser(description="Print the lines of a logcat capture that match a filter query.")
parser.add_argument('file', help="logcat text file ('-' for stdin)")
parser.add_argument('query', nargs='?', default='', help="filter query, e.g. 'tag:ActivityManager level:I'")
parser.add_argument('--regex', action='store_true', help="treat the free text of the query as a regular expression")
parser.add_argument('--case-sensitive', action='store_true')
parser.add_argument('--pid', type=int, default=None, help="only show records from this process id")
parser.add_argument('--max-lines', type=int, default=DEFAULT_MAX_LOG_LINES, help="number of most recent lines to keep")
parser.add_argument('--log', default=None, help="enable logging at the specified level")
args = parser.parse_args()

if args.log is not None:
    logging.basicConfig(level=args.log.upper())

if args.file == '-':
    text = sys.stdin.read()
else:
    with open(args.file, encoding='utf-8', errors='replace') as fh:
        text = fh.read()

# Parse the capture and load it into a store as a single source
source_id = 'capture'
records = LogcatParser(source_id=source_id).parse_lines(text)

store = LogStore(max_log_lines=args.max_lines)
store.switch_active_source(source_id)
store.append_batch(source_id, records)
store.update_filter(
    search_text=args.query,
    is_regex=args.regex,
    is_case_sensitive=args.case_sensitive,
    pid=args.pid,
)

for rec in store.filtered_logs:
    print(rec.raw)

stats = store.stats
levels = ' '.join('%s:%d' % (level.letter, count) for level, count in stats.by_level.items())
print("\n%d of %d lines matched (%s)" % (stats.filtered, stats.total, levels), file=sys.stderr)
