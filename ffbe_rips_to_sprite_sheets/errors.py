from typing import Optional


class RipError(Exception):
    pass


class DecodeError(RipError):
    def __init__(self, message: str, line: Optional[int] = None, part: Optional[int] = None):
        self.line = line
        self.part = part
        location = []
        if line is not None:
            location.append(f"line {line + 1}")
        if part is not None:
            location.append(f"part {part}")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class MalformedLine(DecodeError):
    """A cgg/cgs record with too few or non-numeric fields. Recovered per line."""


class InvalidOrientationCode(DecodeError):
    """Part orientation code outside 0-3. Fatal for the frame being decoded."""

    def __init__(self, code: int, line: Optional[int] = None, part: Optional[int] = None):
        self.code = code
        super().__init__(f"Invalid orientation code {code}", line, part)


class EmptyResultSet(RipError):
    """No composited step produced any visible pixel."""


class MissingResource(RipError):
    """An atlas, metadata or config file could not be read."""
