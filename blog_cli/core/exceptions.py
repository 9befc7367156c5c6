__all__ = [
    "DocumentError",
    "NotFoundError",
    "ConstraintViolationError",
    "RemoteError",
]


class DocumentError(Exception):
    """
    Raised when a document can't be decoded or fails validation before being
    written to the remote store.

    Examples:

    - Front matter which is not a mapping
    - Missing title or slug
    - Slug containing characters other than `a-z`, `0-9` and `-`
    """

    errors: list[str]

    def __init__(self, errors: list[str]):
        self.errors = errors
        errors_str = "; ".join(errors)
        super().__init__(f"Invalid document: {errors_str}")


class NotFoundError(Exception):
    """
    Raised when a named document doesn't exist locally or remotely.
    """

    slug: str

    def __init__(self, slug: str, *, remote: bool = False):
        self.slug = slug
        where = " in database" if remote else ""
        super().__init__(f"Blog not found{where}: {slug}")


class ConstraintViolationError(Exception):
    """
    Raised when creating a remote document whose slug already exists.
    """

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Blog already exists in database: {slug}")


class RemoteError(Exception):
    """
    Raised when the remote store fails to connect or execute a query.
    """
