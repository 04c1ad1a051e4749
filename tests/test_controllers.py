"""Tests for the home controller report and views."""

from servicelife.controllers import ErrorViewModel, HomeController, render_error_page
from servicelife.services import ScopedGuidService, SingletonGuidService, TransientGuidService


def make_controller() -> tuple[HomeController, list[str]]:
    services = [
        TransientGuidService(),
        TransientGuidService(),
        ScopedGuidService(),
        ScopedGuidService(),
        SingletonGuidService(),
        SingletonGuidService(),
    ]
    controller = HomeController(*services)  # type: ignore[arg-type]
    return controller, [service.get_identifier() for service in services]


class TestIndex:
    def test_report_lines_grouped_by_lifetime(self) -> None:
        controller, ids = make_controller()

        assert controller.index() == (
            f"Transient 1 : {ids[0]}\n"
            f"Transient 2 : {ids[1]}\n\n\n"
            f"Scoped 1 : {ids[2]}\n"
            f"Scoped 2 : {ids[3]}\n\n\n"
            f"Singleton 1 : {ids[4]}\n"
            f"Singleton 2 : {ids[5]}\n\n\n"
        )

    def test_report_is_stable_for_one_controller(self) -> None:
        controller, _ = make_controller()

        assert controller.index() == controller.index()


class TestErrorViewModel:
    def test_show_request_id_when_present(self) -> None:
        assert ErrorViewModel(request_id="abc").show_request_id

    def test_hide_request_id_when_missing(self) -> None:
        assert not ErrorViewModel(request_id=None).show_request_id
        assert not ErrorViewModel(request_id="").show_request_id

    def test_error_action_builds_model(self) -> None:
        controller, _ = make_controller()

        model = controller.error("trace-1")

        assert model == ErrorViewModel(request_id="trace-1")


class TestRenderErrorPage:
    def test_request_id_is_escaped(self) -> None:
        page = render_error_page(ErrorViewModel(request_id="<id>"), "App")

        assert "<code>&lt;id&gt;</code>" in page

    def test_request_id_block_omitted_without_id(self) -> None:
        page = render_error_page(ErrorViewModel(request_id=None), "App")

        assert "Request ID" not in page
        assert "<title>Error - App</title>" in page


def test_privacy_page_names_application() -> None:
    controller, _ = make_controller()

    assert "<title>Privacy Policy - A &amp; B</title>" in controller.privacy("A & B")
