"""Protocol layer: argument validation, message framing and command encoders."""

from .arguments import parse_command
from .commands import MessageType, encode
from .framing import build_frame, parse_frame
