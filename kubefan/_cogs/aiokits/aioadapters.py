import asyncio
from typing import Optional, Union

from kubefan._cogs.aiokits import aiotasks

# Only asyncio-native primitives; no threading events or concurrent futures.
Flag = Union[aiotasks.Future, asyncio.Event]


async def wait_flag(
        flag: Optional[Flag],
) -> None:
    """
    Wait for a flag to be raised. A missing flag is never raised.
    """
    if flag is None:
        await asyncio.Event().wait()
    elif isinstance(flag, asyncio.Future):
        # Neither cancel the flag when the waiting is cancelled, nor fail if the flag is cancelled.
        await asyncio.wait([flag])
    elif isinstance(flag, asyncio.Event):
        await flag.wait()
    else:
        raise TypeError(f"Unsupported type of a flag: {flag!r}")

