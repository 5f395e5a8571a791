class VocageError(Exception):
    """Base exception for vocage."""
    pass


class NavigationError(VocageError):
    """Raised when a cursor or review operation cannot be carried out.

    The session state is left untouched, callers report and continue.
    """
    pass


class InvalidDeck(NavigationError):
    def __init__(self, index: int, message: str = "Invalid deck"):
        self.index = index
        self.message = f"{message}: {index}"
        super().__init__(self.message)


class NoSuchDeck(NavigationError):
    def __init__(self, name: str, message: str = "No such deck"):
        self.name = name
        self.message = f"{message}: {name}"
        super().__init__(self.message)


class InvalidCardIndex(NavigationError):
    def __init__(self, index: int, message: str = "Invalid card index"):
        self.index = index
        self.message = f"{message}: {index}"
        super().__init__(self.message)


class InvalidDeckOrCard(NavigationError):
    def __init__(self, message: str = "No valid deck or card selected"):
        self.message = message
        super().__init__(message)


class NoFurtherDecks(NavigationError):
    def __init__(self, message: str = "No further decks"):
        self.message = message
        super().__init__(message)


class AtFirstDeck(NavigationError):
    def __init__(self, message: str = "Already at the first deck"):
        self.message = message
        super().__init__(message)


class NoDecksAtAll(NavigationError):
    def __init__(self, message: str = "There are no decks at all"):
        self.message = message
        super().__init__(message)


class ParseError(VocageError, ValueError):
    """Raised when a filter query or field list can not be parsed."""
    def __init__(self, query: str, message: str = "Unable to parse"):
        self.query = query
        self.message = f"{message}: {query!r}"
        super().__init__(self.message)


class UnknownField(ParseError):
    def __init__(self, name: str):
        super().__init__(name, "Unknown field")
        self.name = name


class LoadError(VocageError):
    """Raised when a vocabulary set or a session file can not be loaded."""
    def __init__(self, path: str, message: str = "Unable to load"):
        self.path = str(path)
        self.message = f"{message} ({self.path})"
        super().__init__(self.message)


class SaveError(VocageError):
    def __init__(self, path: str, message: str = "Unable to save"):
        self.path = str(path)
        self.message = f"{message} ({self.path})"
        super().__init__(self.message)
