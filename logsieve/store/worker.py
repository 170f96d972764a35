# Background thread for matching large record batches off the store owner's thread
# Requests and results carry a correlation id; the owner ignores results that are not the latest

import itertools
import logging
import queue
import threading
from collections import namedtuple

logger = logging.getLogger(__name__)


FilterRequest = namedtuple('FilterRequest', ['request_id', 'records', 'predicate', 'start_seq'])

FilterResult = namedtuple('FilterResult', ['request_id', 'records', 'positions', 'start_seq', 'end_seq'])
FilterResult.__doc__ = """Matching subset of one request's records.

*positions* are the indices of *records* within the request batch;
*start_seq* / *end_seq* delimit the batch in the requester's sequence
numbering so results can be reconciled with records that arrived later.
"""


class FilterWorker(threading.Thread):
    """Thread that filters record batches and reports the matching subset.

    The worker holds no shared mutable state: every request carries its own
    snapshot of the records and an immutable predicate (`RecordFilter`).
    Results are passed to *reply* (called from the worker thread), or put on
    ``self.results`` when no callback is given.

    There is no cancellation. A requester that has issued a newer request
    simply discards older results by comparing correlation ids.
    """

    def __init__(self, reply=None, name='logsieve-filter-worker'):
        threading.Thread.__init__(self, name=name, daemon=True)
        self.requests = queue.Queue()
        self.results = queue.Queue()
        self._reply = reply if reply is not None else self.results.put
        self._ids = itertools.count(1)
        self.start()

    def submit(self, records, predicate, start_seq=0):
        """Queue *records* for filtering with *predicate*; return the request id."""
        request_id = next(self._ids)
        self.requests.put(FilterRequest(request_id, tuple(records), predicate, start_seq))
        return request_id

    def stop(self):
        self.requests.put(None)

    def run(self):
        while True:
            request = self.requests.get()
            if request is None:
                break
            try:
                result = self._process(request)
            except Exception:
                logger.exception("Filter request %d failed", request.request_id)
                continue
            self._reply(result)

    def _process(self, request):
        predicate = request.predicate
        positions = []
        matched = []
        for i, rec in enumerate(request.records):
            if predicate(rec):
                positions.append(i)
                matched.append(rec)
        logger.debug("Filter request %d: %d of %d records matched",
                     request.request_id, len(matched), len(request.records))
        return FilterResult(
            request_id=request.request_id,
            records=matched,
            positions=positions,
            start_seq=request.start_seq,
            end_seq=request.start_seq + len(request.records),
        )
