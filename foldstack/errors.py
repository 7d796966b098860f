"""Exceptions raised while turning profiler output into folded stacks."""


class FoldError(Exception):
    """Base class for every fatal error raised by foldstack."""


class MalformedInputError(FoldError, ValueError):
    """A line of the raw dump does not follow the expected grammar."""


class SemanticMismatchError(FoldError, ValueError):
    """Counts and counter names disagree, or a counter name is empty."""


class IncompleteProfileError(FoldError):
    """The dump ended before the locations region was reached."""

    def __init__(self, state: str):
        super().__init__(f"parser ended before processing locations, state: {state}")
        self.state = state
