"""
Custom exception classes for the Troves assistant
"""


class TrovesAssistantError(Exception):
    """Base exception for Troves assistant errors"""
    pass


class ConfigurationError(TrovesAssistantError):
    """Error in system configuration"""
    pass


class StrategyFetchError(TrovesAssistantError):
    """The strategies catalog could not be fetched and no cached copy exists"""
    pass


class ContractServiceError(TrovesAssistantError):
    """Base class for vault contract failures"""
    pass


class ContractNotFoundError(ContractServiceError):
    """No contract address resolves for the requested vault or strategy"""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Contract not found for vault type: {identifier}")


class ContractCallError(ContractServiceError):
    """A read call against a vault contract failed"""
    pass


class InvalidAmountError(ContractServiceError):
    """An amount or address argument could not be parsed as an integer"""
    pass


class MessagingError(TrovesAssistantError):
    """Error delivering a message to a chat platform"""
    pass
