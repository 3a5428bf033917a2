from __future__ import annotations


class IgsError(ValueError):
    """Recoverable, user-facing load failure. Prior session state is left intact."""


class UnrecognizedFileFormat(IgsError):
    def __init__(self, name: str) -> None:
        super().__init__(
            f"Error loading CSV file '{name}'. "
            "Please make sure your file is a CSV file formatted with correct column headers"
        )
        self.name = name


class UnsupportedFileType(IgsError):
    def __init__(self, name: str) -> None:
        super().__init__(
            f"Error loading file '{name}'. Please make sure your file is an accepted format"
        )
        self.name = name


class ImageLoadFailure(IgsError):
    pass


class NetworkFetchFailure(IgsError):
    pass
