import ipaddress
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, StrictBool, StrictInt

from . import config
from .logging_config import log
from .store import InvalidArgument, PasscodeStore


router = APIRouter()


class PasscodeIssueRequest(BaseModel):
    passcode: StrictInt
    duration_ms: Optional[StrictInt] = None


class PasscodeVerifyRequest(BaseModel):
    passcode: StrictInt
    consume: StrictBool = True


def _is_loopback_host(host: str) -> bool:
    """Return True when the host is localhost/loopback, including IPv4-mapped IPv6."""
    value = str(host or "").strip()
    if not value:
        return False
    if value.lower() == "localhost":
        return True
    try:
        ip = ipaddress.ip_address(value)
    except ValueError:
        return False
    if ip.is_loopback:
        return True
    mapped = getattr(ip, "ipv4_mapped", None)
    return bool(mapped and mapped.is_loopback)


def _require_localhost(request: Request) -> None:
    """Allow access only from loopback addresses when the API is local-only."""
    if not bool(getattr(config, "API_LOCAL_ONLY", True)):
        return
    host = str(getattr(getattr(request, "client", None), "host", "") or "").strip()
    if not _is_loopback_host(host):
        raise HTTPException(403)


def get_store(request: Request) -> PasscodeStore:
    """Return the store owned by the running app."""
    _require_localhost(request)
    store = getattr(request.app.state, "passcode_store", None)
    if store is None:
        raise HTTPException(503, detail="passcode_store_unavailable")
    return store


StoreDep = Depends(get_store)


@router.post("/api/passcodes")
def issue_passcode(req: PasscodeIssueRequest, store: PasscodeStore = StoreDep):
    """Store or refresh a caller-generated passcode."""
    try:
        existed = store.insert_or_refresh(req.passcode, req.duration_ms)
    except InvalidArgument as e:
        raise HTTPException(400, detail=f"invalid_argument:{e}")
    return {"ok": True, "existed": existed, "remaining_ms": store.remaining_time(req.passcode)}


@router.post("/api/passcodes/verify")
def verify_passcode(req: PasscodeVerifyRequest, store: PasscodeStore = StoreDep):
    """Check a submitted passcode, consuming it on success unless asked not to."""
    valid = store.consume(req.passcode) if req.consume else store.validate(req.passcode)
    if not valid:
        log.info("Passcode verification rejected")
    return {"valid": valid}


@router.post("/api/passcodes/cleanup")
def cleanup_passcodes(store: PasscodeStore = StoreDep):
    """Sweep expired passcodes now."""
    return {"removed": store.cleanup_expired()}


@router.get("/api/passcodes/stats")
def passcode_stats(store: PasscodeStore = StoreDep):
    """Report active passcode count and default TTL."""
    return {"active": store.active_count(), "default_ttl_ms": store.default_ttl_ms()}


@router.get("/api/passcodes/{passcode}/remaining")
def passcode_remaining(passcode: int, store: PasscodeStore = StoreDep):
    """Return milliseconds left on a passcode."""
    return {"remaining_ms": store.remaining_time(passcode)}


@router.delete("/api/passcodes/{passcode}")
def revoke_passcode(passcode: int, store: PasscodeStore = StoreDep):
    """Remove a passcode."""
    return {"removed": store.remove(passcode)}
