from minnownet.tcp_message import TCPMessage, TCPReceiverMessage, TCPSenderMessage, UserDatagramInfo


def test_empty_message_uses_no_sequence_numbers():
    assert TCPSenderMessage().sequence_length() == 0


def test_syn_uses_one_sequence_number():
    assert TCPSenderMessage(syn=True).sequence_length() == 1


def test_syn_payload_fin():
    assert TCPSenderMessage(syn=True, payload=b"abcd", fin=True).sequence_length() == 6


def test_payload_length_counts():
    message = TCPSenderMessage(payload=b"x" * 17)
    with_fin = TCPSenderMessage(payload=b"x" * 17, fin=True)
    assert with_fin.sequence_length() == message.sequence_length() + 1


def test_rst_does_not_occupy_sequence_space():
    assert TCPSenderMessage(rst=True).sequence_length() == TCPSenderMessage().sequence_length()


def test_receiver_message_defaults():
    message = TCPReceiverMessage()
    assert message.ackno is None
    assert message.window_size == 0
    assert message.rst is False


def test_user_datagram_info_defaults():
    assert UserDatagramInfo() == UserDatagramInfo(src_port=0, dst_port=0, cksum=0)


def test_tcp_message_parts_are_independent():
    first = TCPMessage()
    second = TCPMessage()
    first.sender.payload = b"data"
    first.receiver.window_size = 10
    assert second.sender.payload == b""
    assert second.receiver.window_size == 0