class ChannelClosedError(Exception):
    """Raised when the other end of a broadcast or action queue has gone away."""
