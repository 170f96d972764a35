# Parser for raw `adb logcat` output lines
# Supports the threadtime, time-only and brief formats; unrecognized lines are skipped

import datetime
import re

from .records import LogRecord, Severity, severity_family


# "MM-DD HH:MM:SS.mmm  PID  TID L TAG: MESSAGE"
THREADTIME_RE = re.compile(
    r'^(\d{2}-\d{2})\s+(\d{2}:\d{2}:\d{2}\.\d{3})\s+(\d+)\s+(\d+)\s+([VDIWEFA])\s+([^:]+):\s*(.*)$')

# "HH:MM:SS.mmm  PID  TID L TAG: MESSAGE"
TIME_RE = re.compile(
    r'^(\d{2}:\d{2}:\d{2}\.\d{3})\s+(\d+)\s+(\d+)\s+([VDIWEFA])\s+([^:]+):\s*(.*)$')

# "L/TAG( PID): MESSAGE"
BRIEF_RE = re.compile(r'^([VDIWEFA])/([^(]+)\(\s*(\d+)\):\s*(.*)$')

BANNER_PREFIX = '--------- beginning of'


def level_from_char(char):
    """Map a logcat priority letter to a Severity; 'F' (fatal) becomes ASSERT."""
    if char == 'F':
        return Severity.ASSERT
    return severity_family(char)


class LogcatParser:
    """Turns logcat text into LogRecords with strictly increasing ids.

    Parameters
    ----------
    source_id : str | None
        Stored on every record produced by this parser.
    clock : callable
        Returns the current local datetime; used for the year of the full
        date-time and for each record's epoch (logcat lines carry neither).
    """

    def __init__(self, source_id=None, clock=datetime.datetime.now):
        self.source_id = source_id
        self.clock = clock
        self.next_id = 0

    def reset(self):
        self.next_id = 0

    def parse_line(self, line):
        """Parse one line; return a LogRecord, or None for blank, banner and unrecognized lines."""
        line = line.strip()
        if not line or line.startswith(BANNER_PREFIX):
            return None

        now = self.clock()
        m = THREADTIME_RE.match(line)
        if m is not None:
            date, time_str, pid, tid, level, tag, message = m.groups()
            return self._make(line, now, time_str, '%d-%s %s' % (now.year, date, time_str),
                              pid, tid, level, tag, message)

        m = TIME_RE.match(line)
        if m is not None:
            time_str, pid, tid, level, tag, message = m.groups()
            return self._make(line, now, time_str, '%s %s' % (now.strftime('%Y-%m-%d'), time_str),
                              pid, tid, level, tag, message)

        m = BRIEF_RE.match(line)
        if m is not None:
            level, tag, pid, message = m.groups()
            time_str = now.strftime('%H:%M:%S.') + '%03d' % (now.microsecond // 1000)
            return self._make(line, now, time_str, '%s %s' % (now.strftime('%Y-%m-%d'), time_str),
                              pid, 0, level, tag, message)

        return None

    def parse_lines(self, text):
        """Parse every recognized line of *text*."""
        records = []
        for line in text.splitlines():
            rec = self.parse_line(line)
            if rec is not None:
                records.append(rec)
        return records

    def _make(self, line, now, time_str, date_time, pid, tid, level, tag, message):
        rec = LogRecord(
            id=self.next_id,
            timestamp=time_str,
            level=level_from_char(level),
            tag=tag.strip(),
            message=message,
            source_id=self.source_id,
            pid=int(pid),
            tid=int(tid),
            date_time=date_time,
            epoch=int(now.timestamp() * 1000),
            raw=line,
        )
        self.next_id += 1
        return rec
