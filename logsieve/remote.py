# zmq transport for shipping log record batches into a LogStore
# RecordSender pushes JSON batches; RecordServer receives them on a thread and queues them for the store owner

import atexit
import json
import logging
import queue
import threading

import zmq

from .records import LogRecord

logger = logging.getLogger(__name__)


def encode_batch(source_id, records):
    return json.dumps({
        'source': source_id,
        'records': [rec.to_dict() for rec in records],
    }).encode('utf-8')


def decode_batch(msg):
    """Return (source_id, records) from an encoded batch. Raises ValueError if malformed."""
    try:
        data = json.loads(msg)
        source_id = data['source']
        records = [LogRecord.from_dict(item) for item in data['records']]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Malformed record batch: %s" % exc) from exc
    return source_id, records


class RecordSender:
    """Forwards record batches to a remote RecordServer via zmq socket.

    Batches are queued by `send_batch()` and written to the socket by a
    background thread, so producers (for example a thread reading logcat
    output) never block on the network.

    Parameters
    ----------
    address : str | None
        The socket address of a RecordServer. If None, then the sender is
        not connected and `connect()` must be called later; batches sent
        while unconnected are dropped.
    """

    def __init__(self, address=None):
        self.socket = None
        self.batch_queue = queue.Queue()
        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()

        if address is not None:
            self.connect(address)

        atexit.register(self.close)

    def send_batch(self, source_id, records):
        self.batch_queue.put((source_id, list(records)))

    def run(self):
        while True:
            item = self.batch_queue.get()
            if item is None:
                break
            self._send(*item)

    def _send(self, source_id, records):
        if self.socket is None:
            return
        self.socket.send(encode_batch(source_id, records))

    def connect(self, addr):
        """Set the address of the RecordServer to which batches should be sent."""
        if self.socket is not None:
            self.socket.close()

        self.socket = zmq.Context.instance().socket(zmq.PUSH)
        self.socket.linger = 1000  # don't let socket deadlock when exiting
        self.socket.connect(addr)

    def close(self, timeout=1.0):
        """Send any queued batches, then close the socket."""
        # if this socket is left open when the process exits, it can lead to
        # deadlock.
        self.batch_queue.put(None)
        self.thread.join(timeout)
        socket, self.socket = self.socket, None
        if socket is not None:
            socket.close()


class RecordServer(threading.Thread):
    """Thread for receiving record batches via zmq socket from a RecordSender.

    Decoded batches are put on ``self.batches``; the thread never touches a
    LogStore. The store's owner calls `pump()` to apply them, which keeps all
    store mutations on one thread and preserves arrival order.

    Parameters
    ----------
    address : str
        The zmq address to which the server should bind. Default is
        'tcp://127.0.0.1:*'.
    """

    def __init__(self, address='tcp://127.0.0.1:*'):
        threading.Thread.__init__(self, daemon=True)
        self.running = True
        self.batches = queue.Queue()
        self.socket = zmq.Context.instance().socket(zmq.PULL)
        self.socket.linger = 1000  # don't let socket deadlock when exiting
        self.socket.bind(address)
        self.address = self.socket.getsockopt_string(zmq.LAST_ENDPOINT)
        self.start()

    def stop(self):
        self.running = False

    def run(self):
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        while self.running:
            events = dict(poller.poll(100))
            if self.socket not in events:
                continue
            msg = self.socket.recv()
            try:
                batch = decode_batch(msg)
            except ValueError as exc:
                logger.warning("Dropping record batch: %s", exc)
                continue
            self.batches.put(batch)
        self.socket.close()

    def pump(self, store, max_batches=None):
        """Apply queued batches to *store* in arrival order; return the number applied.

        Must be called from the thread that owns *store*.
        """
        applied = 0
        while max_batches is None or applied < max_batches:
            try:
                source_id, records = self.batches.get_nowait()
            except queue.Empty:
                break
            store.append_batch(source_id, records)
            applied += 1
        return applied
