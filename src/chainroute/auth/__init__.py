from chainroute.auth.allowlist import CallerAllowList

__all__ = ["CallerAllowList"]
