from abc import ABC, abstractmethod
from typing import Any

import streamlit as st


class IStateProvider(ABC):
    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class StreamlitStateProvider(IStateProvider):
    """
    Test progress kept in st.session_state under a key prefix, so a reset
    wipes the attempt without touching widget state or the observability flag.
    """

    def __init__(self, prefix: str = "iq_") -> None:
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str, default: Any = None) -> Any:
        return st.session_state.get(self._key(key), default)

    def set(self, key: str, value: Any) -> None:
        st.session_state[self._key(key)] = value

    def delete(self, key: str) -> None:
        st.session_state.pop(self._key(key), None)

    def clear(self) -> None:
        for key in [k for k in st.session_state.keys() if str(k).startswith(self.prefix)]:
            del st.session_state[key]
