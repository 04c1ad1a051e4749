from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from servicelife.services import (
    IdentifierService,
    ScopedGuidService,
    SingletonGuidService,
    TransientGuidService,
)

_GROUP_SEPARATOR = "\n\n"


@dataclass(frozen=True, slots=True)
class ErrorViewModel:
    """Data rendered by the error page."""

    request_id: str | None
    show_request_id: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "show_request_id", bool(self.request_id))


class HomeController:
    """Request handler receiving two services of each lifetime."""

    def __init__(
        self,
        transient1: TransientGuidService,
        transient2: TransientGuidService,
        scoped1: ScopedGuidService,
        scoped2: ScopedGuidService,
        singleton1: SingletonGuidService,
        singleton2: SingletonGuidService,
    ) -> None:
        self._groups: tuple[tuple[str, tuple[IdentifierService, ...]], ...] = (
            ("Transient", (transient1, transient2)),
            ("Scoped", (scoped1, scoped2)),
            ("Singleton", (singleton1, singleton2)),
        )

    def index(self) -> str:
        """Report the identifier of every injected service.

        One line per service, labelled by lifetime and ordinal, grouped as
        Transient, Scoped, Singleton with blank lines between groups.
        """
        lines: list[str] = []
        for label, services in self._groups:
            for ordinal, service in enumerate(services, start=1):
                lines.append(f"{label} {ordinal} : {service.get_identifier()}\n")
            lines[-1] += _GROUP_SEPARATOR
        return "".join(lines)

    def privacy(self, app_name: str) -> str:
        return _PRIVACY_PAGE.format(app_name=escape(app_name))

    def error(self, request_id: str | None) -> ErrorViewModel:
        return ErrorViewModel(request_id=request_id)


def render_error_page(model: ErrorViewModel, app_name: str) -> str:
    """Render the error page for ``model``."""
    request_id_block = ""
    if model.show_request_id:
        request_id_block = (
            f"<p><strong>Request ID:</strong> <code>{escape(model.request_id or '')}</code></p>"
        )
    return _ERROR_PAGE.format(app_name=escape(app_name), request_id_block=request_id_block)


_PRIVACY_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Privacy Policy - {app_name}</title></head>
<body>
<h1>Privacy Policy</h1>
<p>Use this page to detail your site's privacy policy.</p>
</body>
</html>
"""

_ERROR_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Error - {app_name}</title></head>
<body>
<h1 class="text-danger">Error.</h1>
<h2 class="text-danger">An error occurred while processing your request.</h2>
{request_id_block}
<h3>Development Mode</h3>
<p>
Swapping to the <strong>development</strong> environment displays detailed information
about the error that occurred.
</p>
<p>
Set <code>SERVICELIFE_DEBUG=true</code> to run in debug mode.
</p>
</body>
</html>
"""
