from typing import Protocol, Sequence


class VoiceProvider(Protocol):
    async def create_call(self, *, to:str, from_:str, url:str, status_callback:str, status_callback_events:Sequence[str]) -> dict: ...

    async def fetch_account(self) -> dict: ...
