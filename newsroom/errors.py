class NewsroomError(Exception):
    """Base class for every error raised by the newsroom package."""


class ConfigError(NewsroomError):
    pass


class InputError(NewsroomError):
    """Rejected input: nothing to extract, or a malformed item payload."""


class GenerationError(NewsroomError):
    pass


class GenerationTimeout(GenerationError):
    pass


class PublishError(NewsroomError):
    """The primary message of an item could not be posted."""
