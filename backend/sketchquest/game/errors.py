class GameError(Exception):
    """A request that breaks a game rule. Reported to the caller only."""
