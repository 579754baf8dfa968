# services/api/routers/deps.py
"""
Shared router dependencies. Stores, persister and settings live on
app.state, wired in main.py at startup.
"""
from typing import Annotated

from fastapi import Depends, Request


def get_state(request: Request):
    return request.app.state


State = Annotated[object, Depends(get_state)]
