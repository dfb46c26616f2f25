"""Base class for run event subscribers."""

from typing import Any


class EventSubscriber:
    """Subscriber with a no-op handler for every run lifecycle event.

    Subclasses override the events they care about. Handlers may be plain or
    ``async`` methods; the dispatcher awaits whichever is returned.
    """

    # Run lifecycle
    def run_start(self, version: str, run_status: Any) -> Any:
        pass

    def run_started(self, run_status: Any) -> Any:
        pass

    def run_completed(self, node: Any, run_status: Any) -> Any:
        pass

    def run_failed(self, exception: BaseException, run_status: Any) -> Any:
        pass

    # Node and run list
    def registration_failed(self, node_name: str, exception: BaseException, config: Any = None) -> Any:
        pass

    def node_load_success(self, node: Any) -> Any:
        pass

    def node_load_failed(self, node_name: str, exception: BaseException, config: Any = None) -> Any:
        pass

    def run_list_expanded(self, run_list_expansion: Any) -> Any:
        pass

    def run_list_expand_failed(self, node: Any, exception: BaseException) -> Any:
        pass

    # Cookbooks and compilation
    def cookbook_resolution_failed(self, expanded_run_list: Any, exception: BaseException) -> Any:
        pass

    def cookbook_sync_failed(self, cookbooks: Any, exception: BaseException) -> Any:
        pass

    def cookbook_compilation_start(self, run_context: Any) -> Any:
        pass

    def file_load_failed(self, path: str | None, exception: BaseException) -> Any:
        pass

    def recipe_not_found(self, exception: BaseException) -> Any:
        pass

    def action_collection_registration(self, action_collection: Any) -> Any:
        pass

    # Converge
    def converge_start(self, run_context: Any) -> Any:
        pass

    def converge_complete(self) -> Any:
        pass

    def converge_failed(self, exception: BaseException) -> Any:
        pass

    # Resource actions
    def resource_action_start(
        self,
        resource: Any,
        action: str,
        notification_type: str | None = None,
        notifier: Any = None,
    ) -> Any:
        pass

    def resource_current_state_loaded(self, resource: Any, action: str, current_resource: Any) -> Any:
        pass

    def resource_up_to_date(self, resource: Any, action: str) -> Any:
        pass

    def resource_skipped(self, resource: Any, action: str, conditional: Any) -> Any:
        pass

    def resource_updated(self, resource: Any, action: str) -> Any:
        pass

    def resource_failed(self, resource: Any, action: str, exception: BaseException) -> Any:
        pass

    def resource_completed(self, resource: Any) -> Any:
        pass

    # Out of band
    def deprecation(self, message: Any, location: str | None = None) -> Any:
        pass


EVENT_NAMES = frozenset(name for name in vars(EventSubscriber) if not name.startswith("_"))
