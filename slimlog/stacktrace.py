"""Stack traces of exceptions rendered as log field values."""

from __future__ import annotations

import os
import traceback
from typing import Dict, List, Optional

STACK_SOURCE_FILE_NAME = "source"
STACK_SOURCE_LINE_NAME = "line"
STACK_SOURCE_FUNCTION_NAME = "func"


def _unwrap(error: BaseException) -> Optional[BaseException]:
    if error.__cause__ is not None:
        return error.__cause__
    if not error.__suppress_context__:
        return error.__context__
    return None


def marshal_stack(error: Optional[BaseException]) -> Optional[List[Dict[str, str]]]:
    """Return the frames of the first exception in the chain that was raised.

    The chain is followed through ``__cause__`` (and ``__context__`` unless
    suppressed) until an exception with a traceback is found. Frames are
    listed innermost first, each as a mapping of source file base name,
    line number (as text) and function name. Returns None when no
    exception in the chain carries a traceback.

    Use it as ``settings.error_stack_marshaler = marshal_stack``.
    """
    current = error
    while current is not None and current.__traceback__ is None:
        current = _unwrap(current)
    if current is None:
        return None

    frames = list(traceback.walk_tb(current.__traceback__))
    frames.reverse()
    stack = [
        {
            STACK_SOURCE_FILE_NAME: os.path.basename(frame.f_code.co_filename),
            STACK_SOURCE_LINE_NAME: str(lineno),
            STACK_SOURCE_FUNCTION_NAME: frame.f_code.co_name,
        }
        for frame, lineno in frames
    ]
    del frames
    return stack