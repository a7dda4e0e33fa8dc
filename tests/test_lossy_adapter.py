from minnownet.lossy_adapter import LossyFdAdapter
from minnownet.tcp_config import FdAdapterConfig
from minnownet.tcp_message import TCPMessage, TCPSenderMessage


class _FixedRng:
    def __init__(self, value):
        self.value = value

    def getrandbits(self, bits):
        return self.value


class _Inner:
    def __init__(self):
        self.config = FdAdapterConfig()
        self.written = []
        self.reads = 0
        self.listening = False
        self.ticks = []
        self.descriptor = object()

    def fd(self):
        return self.descriptor

    def read(self):
        self.reads += 1
        return TCPMessage(TCPSenderMessage(seqno=self.reads))

    def write(self, message):
        self.written.append(message)

    def set_listening(self, listening):
        self.listening = listening

    def tick(self, ms):
        self.ticks.append(ms)


def test_no_loss_passes_everything():
    inner = _Inner()
    lossy = LossyFdAdapter(inner)
    messages = [TCPMessage(TCPSenderMessage(seqno=i)) for i in range(50)]
    for message in messages:
        lossy.write(message)
    assert inner.written == messages
    assert all(lossy.read() is not None for _ in range(50))


def test_write_dropped_below_uplink_rate():
    inner = _Inner()
    inner.config.loss_rate_up = 11
    lossy = LossyFdAdapter(inner, _FixedRng(10))
    lossy.write(TCPMessage())
    assert inner.written == []


def test_write_kept_at_uplink_rate():
    inner = _Inner()
    inner.config.loss_rate_up = 10
    lossy = LossyFdAdapter(inner, _FixedRng(10))
    message = TCPMessage()
    lossy.write(message)
    assert inner.written == [message]


def test_read_dropped_uses_downlink_rate():
    inner = _Inner()
    inner.config.loss_rate_dn = 11
    inner.config.loss_rate_up = 0
    lossy = LossyFdAdapter(inner, _FixedRng(10))
    assert lossy.read() is None
    assert inner.reads == 1


def test_read_kept_when_downlink_lossless():
    inner = _Inner()
    inner.config.loss_rate_up = 65535
    lossy = LossyFdAdapter(inner, _FixedRng(0))
    message = lossy.read()
    assert message.sender.seqno == 1


def test_passthroughs():
    inner = _Inner()
    lossy = LossyFdAdapter(inner)
    lossy.set_listening(True)
    lossy.tick(25)
    assert inner.listening is True
    assert inner.ticks == [25]
    assert lossy.fd() is inner.descriptor
    assert lossy.config is inner.config