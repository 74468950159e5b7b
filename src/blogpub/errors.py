"""Exception types raised by blogpub library code"""


class BlogpubError(Exception):
    """Base class for blogpub errors."""


class FrontmatterError(BlogpubError, ValueError):
    """A post header is present but is not a valid YAML mapping."""


class StagingError(BlogpubError):
    """A staged post file is missing, unreadable, or malformed."""
