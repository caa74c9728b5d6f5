"""Transport packet sizing: queue limits and padding of plaintext content."""

from __future__ import annotations

PADDING_MULTIPLE = 16

QUEUE_OUTBOUND_SIZE = 1024
QUEUE_INBOUND_SIZE = 1024
QUEUE_HANDSHAKE_SIZE = 1024
MAX_SEGMENT_SIZE = (1 << 16) - 1  # largest possible UDP datagram
PREALLOCATED_BUFFERS_PER_POOL = 0  # unbounded pools

DEFAULT_MTU = 1420


def _round_up(size: int) -> int:
    return (size + PADDING_MULTIPLE - 1) & ~(PADDING_MULTIPLE - 1)


def calculate_padding_size(packet_size: int, mtu: int) -> int:
    """Number of zero bytes to append before encrypting a packet.

    Content is padded to a multiple of ``PADDING_MULTIPLE``. With a non-zero
    ``mtu`` the padded size of the last MTU-sized unit never exceeds the MTU.
    """
    last_unit = packet_size
    if mtu == 0:
        return _round_up(last_unit) - last_unit
    if last_unit > mtu:
        last_unit %= mtu
    padded_size = min(_round_up(last_unit), mtu)
    return padded_size - last_unit