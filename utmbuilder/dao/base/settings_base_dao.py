from abc import ABC, abstractmethod


class SettingsBaseDAO(ABC):
    """Interface for the process-wide builder settings.

    Methods:
        activate(**kwargs) -> bool:
            Initialize the metadata toggle to enabled unless it is already set.
            Returns True if the toggle was initialized by this call.

        metadata_enabled(**kwargs) -> bool:
            Read the metadata toggle (enabled when never set).

        set_metadata_enabled(enabled, **kwargs) -> bool:
            Persist the metadata toggle and return the stored value.
    """

    @abstractmethod
    def activate(self, **kwargs) -> bool:
        pass

    @abstractmethod
    def metadata_enabled(self, **kwargs) -> bool:
        pass

    @abstractmethod
    def set_metadata_enabled(self, enabled: bool, **kwargs) -> bool:
        pass
