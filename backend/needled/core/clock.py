from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how rows are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_now() -> datetime:
    """Request-scoped clock. Tests override this dependency to pin 'today'."""
    return utcnow()


__all__ = ["utcnow", "get_now"]
