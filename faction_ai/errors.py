"""Exceptions raised by the faction AI."""


class FactionAIError(Exception):
    """Base class for faction AI errors"""


class UnknownFactionError(FactionAIError):
    def __init__(self, faction_id: str):
        super().__init__(f"Unknown faction: {faction_id}")
        self.faction_id = faction_id


class UnknownSystemError(FactionAIError):
    def __init__(self, system_id: str):
        super().__init__(f"Unknown system: {system_id}")
        self.system_id = system_id


class CatalogError(FactionAIError):
    """Asset catalog file missing or unreadable"""


class TurnCancelled(FactionAIError):
    """Paced execution was aborted by the caller"""
