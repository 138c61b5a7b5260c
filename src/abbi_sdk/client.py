"""SDK client and the process-wide ``ABBI`` facade."""

import threading
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from .campaigns import CampaignRegistry, HeadlessPresenter, default_dispatcher
from .config import ConfigManager
from .core.interfaces import (
    BackendTransport,
    CallbackDispatcher,
    CampaignInfoDelegate,
    CampaignPresenter,
    DeepLinkHandler,
)
from .core.types import (
    AppType,
    AttributeScope,
    AttributesRequest,
    AttributeValue,
    BackendRequest,
    CampaignInfo,
    FlagRequest,
    Goal,
    GoalRequest,
    Session,
    SessionStartRequest,
    TriggerRequest,
    UserIdRequest,
)
from .delivery import DeliveryQueue
from .links import parse_sdk_url
from .links.url_handler import FLAG, GOAL, TRIGGER
from .observability import get_logger
from .transport import HttpBackend

logger = get_logger(__name__)

_SCALARS = (str, int, float, bool, type(None))


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class ABBIClient:
    """Session state, attribute namespaces and campaign handling for one process.

    Every operation returns immediately. Backend traffic goes through a
    ``DeliveryQueue``; failures are logged and never raised to the caller.
    Without an active session, operations are logged no-ops.
    """

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        transport: Optional[BackendTransport] = None,
        dispatcher: Optional[CallbackDispatcher] = None,
        presenter: Optional[CampaignPresenter] = None,
    ):
        """Initialize the client.

        Args:
            config: Configuration manager. If None, creates default.
            transport: Backend transport. If None, creates an HTTP backend.
            dispatcher: Main-context dispatcher. If None, picks one for the
                calling context (see ``default_dispatcher``).
            presenter: Campaign presentation layer. If None, campaigns are
                only logged.
        """
        self.config = config or ConfigManager()
        settings = self.config.settings

        self.transport = transport or HttpBackend.from_settings(settings.backend)
        self.delivery = self._new_delivery_queue()
        self.dispatcher = dispatcher or default_dispatcher()
        self.campaigns = CampaignRegistry(self.dispatcher)
        self.presenter = presenter or HeadlessPresenter()

        self._deep_link_handler: Optional[DeepLinkHandler] = None
        self._session: Optional[Session] = None
        self._credentials: Optional[Tuple[str, str, AppType]] = None
        self._user_id: Optional[str] = None
        self._attributes: Dict[str, AttributeValue] = {}
        self._private_attributes: Dict[str, AttributeValue] = {}

        # Single writer for session and attribute state
        self._lock = threading.RLock()

    def _new_delivery_queue(self) -> DeliveryQueue:
        return DeliveryQueue(
            self.transport,
            max_queue_size=self.config.settings.delivery.max_queue_size,
        )

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start(self, app_id: str, secret_key: str, app_type: AppType = AppType.NATIVE) -> None:
        """Start a session, replacing any active one.

        Malformed credentials are logged and leave the client without a
        session.

        Args:
            app_id: Application id issued by the console.
            secret_key: Application secret key issued by the console.
            app_type: Host application category.
        """
        credentials = self._validate_credentials(app_id, secret_key, app_type)

        with self._lock:
            if credentials is None:
                self._session = None
                self._credentials = None
                return

            replaced = self._session is not None
            self._credentials = credentials
            session = self._open_session()

        if replaced:
            logger.info("Replaced active session", session_id=session.session_id)
        logger.info("Session started", app_id=session.app_id, app_type=session.app_type.name)

    def restart(self) -> None:
        """Start a new session with the last credentials passed to ``start``."""
        with self._lock:
            if self._credentials is None:
                logger.warning("restart() called before a successful start(), ignoring")
                return
            session = self._open_session()

        logger.info("Session restarted", session_id=session.session_id)

    def _open_session(self) -> Session:
        """Create the session and queue its announcement. Caller holds the lock."""
        app_id, secret_key, app_type = self._credentials
        if self.delivery.is_closed:
            # A session opened after shutdown gets a fresh worker
            self.delivery = self._new_delivery_queue()

        session = Session(
            app_id=app_id,
            secret_key=secret_key,
            app_type=app_type,
            user_id=self._user_id,
        )
        self._session = session

        start_request = SessionStartRequest(
            app_type=app_type,
            started_at=session.started_at,
            user_id=self._user_id,
        )
        self._submit(session, start_request, "session_start")

        # Attributes belong to the user and are replayed into the new session
        if self._attributes:
            self._submit(
                session,
                AttributesRequest(scope=AttributeScope.PUBLIC, attributes=dict(self._attributes)),
                "attributes",
            )
        if self._private_attributes:
            self._submit(
                session,
                AttributesRequest(scope=AttributeScope.PRIVATE, attributes=dict(self._private_attributes)),
                "private_attributes",
            )
        return session

    @staticmethod
    def _validate_credentials(
        app_id: Any,
        secret_key: Any,
        app_type: Any,
    ) -> Optional[Tuple[str, str, AppType]]:
        if not _non_blank(app_id):
            logger.error("Cannot start: application id is missing or malformed")
            return None
        if not _non_blank(secret_key):
            logger.error("Cannot start: secret key is missing or malformed", app_id=app_id)
            return None

        try:
            if isinstance(app_type, bool):
                raise ValueError(app_type)
            app_type = AppType(app_type)
        except (TypeError, ValueError):
            logger.error("Cannot start: unknown application type", app_type=app_type)
            return None
        if app_type is AppType.MAX:
            logger.error("Cannot start: AppType.MAX is not an application type")
            return None

        return app_id.strip(), secret_key.strip(), app_type

    def _active_session(self, operation: str) -> Optional[Session]:
        session = self._session
        if session is None:
            logger.debug("SDK not started, ignoring call", operation=operation)
        return session

    def _submit(self, session: Session, request: BackendRequest, label: str) -> None:
        async def deliver(transport: BackendTransport) -> None:
            await transport.send(session, request)

        self.delivery.submit(deliver, label=label)

    # ------------------------------------------------------------------
    # Goals and user data
    # ------------------------------------------------------------------

    def send_goal(self, name: str, properties: Optional[Dict[str, AttributeValue]] = None) -> None:
        """Report a goal for asynchronous delivery.

        Args:
            name: Goal name.
            properties: Optional scalar properties of the goal.
        """
        if not _non_blank(name):
            logger.warning("Ignoring goal with a missing name")
            return
        if properties is not None and not isinstance(properties, Mapping):
            logger.warning("Ignoring goal with non-mapping properties", goal=name)
            return

        try:
            goal = Goal(name=name, properties=dict(properties or {}))
        except ValidationError as e:
            logger.warning("Ignoring goal with invalid properties", goal=name, error=str(e))
            return

        with self._lock:
            session = self._active_session("send_goal")
            if session is None:
                return
            self._submit(session, GoalRequest(goal=goal), "goal")

    def set_user_attribute(self, key: str, value: AttributeValue) -> None:
        """Set a public user attribute."""
        self._set_attributes(AttributeScope.PUBLIC, {key: value})

    def set_user_attributes(self, attributes: Dict[str, AttributeValue]) -> None:
        """Set multiple public user attributes."""
        self._set_attributes(AttributeScope.PUBLIC, attributes)

    def set_private_user_attribute(self, key: str, value: AttributeValue) -> None:
        """Set a private user attribute."""
        self._set_attributes(AttributeScope.PRIVATE, {key: value})

    def set_private_user_attributes(self, attributes: Dict[str, AttributeValue]) -> None:
        """Set multiple private user attributes."""
        self._set_attributes(AttributeScope.PRIVATE, attributes)

    def _set_attributes(self, scope: AttributeScope, attributes: Any) -> None:
        if not isinstance(attributes, Mapping):
            logger.warning("Ignoring non-mapping user attributes", scope=scope.value)
            return

        accepted: Dict[str, AttributeValue] = {}
        for key, value in attributes.items():
            if not _non_blank(key):
                logger.warning("Ignoring user attribute with a malformed key", scope=scope.value)
            elif not isinstance(value, _SCALARS):
                logger.warning(
                    "Ignoring non-scalar user attribute",
                    scope=scope.value,
                    key=key,
                    value_type=type(value).__name__,
                )
            else:
                accepted[key] = value

        if not accepted:
            return

        with self._lock:
            session = self._active_session(f"set_{scope.value}_attributes")
            if session is None:
                return

            target = self._attributes if scope is AttributeScope.PUBLIC else self._private_attributes
            target.update(accepted)
            self._submit(
                session,
                AttributesRequest(scope=scope, attributes=accepted),
                f"{scope.value}_attributes",
            )

    def clear_private_user_attributes(self) -> None:
        """Remove every private user attribute."""
        with self._lock:
            session = self._active_session("clear_private_user_attributes")
            if session is None:
                return

            self._private_attributes.clear()
            self._submit(
                session,
                AttributesRequest(scope=AttributeScope.PRIVATE, clear=True),
                "clear_private_attributes",
            )

    def set_user_id(self, user_id: str) -> None:
        """Associate the session with an external user id."""
        if not _non_blank(user_id):
            logger.warning("Ignoring malformed user id")
            return

        with self._lock:
            session = self._active_session("set_user_id")
            if session is None:
                return

            self._user_id = user_id
            session.user_id = user_id
            self._submit(session, UserIdRequest(user_id=user_id), "user_id")

    def set_flag(self, n: int) -> None:
        """Set a diagnostic flag given by the support team."""
        if isinstance(n, bool) or not isinstance(n, int):
            logger.warning("Ignoring non-integer flag", flag=n)
            return

        with self._lock:
            session = self._active_session("set_flag")
            if session is None:
                return

            session.flags[n] = datetime.now()
            self._submit(session, FlagRequest(flag=n), "flag")
        logger.info("Diagnostic flag set", flag=n)

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    def trigger(self, name: str, deep_link: Optional[str] = None) -> None:
        """Show the campaign bound to a trigger key, ignoring its segments.

        When ``deep_link`` is given the host navigates there first, whether
        or not a campaign is then shown. Unknown or already displayed
        campaigns are ignored.

        Args:
            name: Trigger key.
            deep_link: Optional in-app URI to navigate to first.
        """
        if not _non_blank(name):
            logger.warning("Ignoring trigger with a missing name")
            return
        if deep_link is not None and not isinstance(deep_link, str):
            logger.warning("Ignoring trigger with a malformed deep link", trigger=name)
            return
        deep_link = deep_link or None

        with self._lock:
            session = self._active_session("trigger")
            if session is None:
                return

        # Navigation precedes presentation and does not depend on the backend
        if deep_link:
            self.dispatcher.post(lambda: self._navigate(deep_link))

        request = TriggerRequest(trigger=name, deep_link=deep_link)

        async def fetch(transport: BackendTransport) -> None:
            campaign = await transport.fetch_campaign(session, request)
            if campaign is None:
                logger.debug("No campaign bound to trigger", trigger=name)
                return
            self.dispatcher.post(lambda: self._present(campaign))

        self.delivery.submit(fetch, label="trigger")

    def _present(self, campaign: CampaignInfo) -> None:
        """Put a campaign on screen. Runs on the main context."""
        if not self.campaigns.show(campaign):
            logger.debug("Campaign already displayed", campaign_id=campaign.campaign_id)
            return

        campaign_id = campaign.campaign_id
        try:
            self.presenter.present(campaign, lambda: self.dismiss_campaign(campaign_id))
        except Exception as e:
            self.campaigns.discard(campaign_id)
            logger.error("Campaign presenter failed", campaign_id=campaign_id, error=str(e), exc_info=True)

    def _navigate(self, deep_link: str) -> None:
        handler = self._deep_link_handler
        if handler is None:
            logger.warning("No deep link handler registered, skipping navigation", deep_link=deep_link)
            return
        try:
            handler(deep_link)
        except Exception as e:
            logger.error("Deep link navigation failed", deep_link=deep_link, error=str(e), exc_info=True)

    def dismiss_campaign(self, campaign_id: str) -> bool:
        """Mark a displayed campaign as dismissed and notify the delegate.

        Returns:
            False if the campaign was not on screen.
        """
        return self.campaigns.dismiss(campaign_id)

    def set_campaign_info_delegate(self, delegate: Optional[CampaignInfoDelegate]) -> None:
        """Register the dismissal delegate (held weakly)."""
        self.campaigns.set_delegate(delegate)

    def set_campaign_presenter(self, presenter: CampaignPresenter) -> None:
        """Install the host's campaign presentation layer."""
        self.presenter = presenter

    def set_deep_link_handler(self, handler: Optional[DeepLinkHandler]) -> None:
        """Install the callable used to navigate to deep links."""
        self._deep_link_handler = handler

    def run_pending_callbacks(self) -> int:
        """Run main-context callbacks the dispatcher is holding for the host."""
        return self.dispatcher.run_pending()

    # ------------------------------------------------------------------
    # URL handling
    # ------------------------------------------------------------------

    def open_url(self, url: Any, options: Optional[Dict[str, Any]] = None) -> bool:
        """Handle an inbound URL if it is an SDK URL.

        Args:
            url: The URL received by the host application.
            options: Options the host received alongside the URL.

        Returns:
            True if the SDK consumed the URL. Never raises.
        """
        with self._lock:
            session = self._session
        if session is None:
            return False

        try:
            action = parse_sdk_url(
                url,
                scheme=self.config.settings.links.scheme,
                app_id=session.app_id,
            )
        except Exception as e:
            logger.debug("Could not parse URL", url=str(url), error=str(e))
            return False

        if action is None:
            return False

        source = options.get("source_application") if isinstance(options, Mapping) else None
        logger.info("Handling SDK URL", action=action.action, source_application=source)

        if action.action == TRIGGER:
            self.trigger(action.name, action.deep_link)
        elif action.action == FLAG:
            self.set_flag(action.flag)
        elif action.action == GOAL:
            self.send_goal(action.name, action.properties)
        return True

    # ------------------------------------------------------------------
    # State and lifecycle
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_started(self) -> bool:
        return self._session is not None

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def user_attributes(self) -> Dict[str, AttributeValue]:
        with self._lock:
            return dict(self._attributes)

    @property
    def private_user_attributes(self) -> Dict[str, AttributeValue]:
        with self._lock:
            return dict(self._private_attributes)

    def delivery_stats(self) -> Dict[str, int]:
        return self.delivery.stats()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until queued deliveries have been attempted."""
        if timeout is None:
            timeout = self.config.settings.delivery.shutdown_timeout
        return self.delivery.flush(timeout)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Flush, stop the delivery worker and end the session."""
        if timeout is None:
            timeout = self.config.settings.delivery.shutdown_timeout
        self.delivery.shutdown(timeout)
        with self._lock:
            self._session = None
        self.campaigns.clear()
        logger.info("SDK shut down")


# Global client instance
_client: Optional[ABBIClient] = None
_client_lock = threading.Lock()


def get_client() -> ABBIClient:
    """Get or create the process-wide client."""
    global _client
    with _client_lock:
        if _client is None:
            _client = ABBIClient()
        return _client


def set_client(client: Optional[ABBIClient]) -> Optional[ABBIClient]:
    """Replace the process-wide client.

    Returns:
        The previous client, which is left running.
    """
    global _client
    with _client_lock:
        previous, _client = _client, client
    return previous


class ABBI:
    """Process-wide access point to the SDK.

    Usage::

        ABBI.start("my-app-id", "my-secret-key")
        ABBI.send_goal("Bought a blue sword", {"item_name": "unlimited_calls"})
        ABBI.set_user_attribute("isProUser", True)
        ABBI.trigger("Show How To Order Credit Card", "myapp://main_screen")

    Every call delegates to the client returned by ``get_client()``.
    """

    @classmethod
    def client(cls) -> ABBIClient:
        return get_client()

    @classmethod
    def set_client(cls, client: Optional[ABBIClient]) -> Optional[ABBIClient]:
        return set_client(client)

    @classmethod
    def start(cls, app_id: str, secret_key: str, app_type: AppType = AppType.NATIVE) -> None:
        get_client().start(app_id, secret_key, app_type)

    @classmethod
    def restart(cls) -> None:
        get_client().restart()

    @classmethod
    def send_goal(cls, name: str, properties: Optional[Dict[str, AttributeValue]] = None) -> None:
        get_client().send_goal(name, properties)

    @classmethod
    def set_user_attribute(cls, key: str, value: AttributeValue) -> None:
        get_client().set_user_attribute(key, value)

    @classmethod
    def set_user_attributes(cls, attributes: Dict[str, AttributeValue]) -> None:
        get_client().set_user_attributes(attributes)

    @classmethod
    def set_private_user_attribute(cls, key: str, value: AttributeValue) -> None:
        get_client().set_private_user_attribute(key, value)

    @classmethod
    def set_private_user_attributes(cls, attributes: Dict[str, AttributeValue]) -> None:
        get_client().set_private_user_attributes(attributes)

    @classmethod
    def clear_private_user_attributes(cls) -> None:
        get_client().clear_private_user_attributes()

    @classmethod
    def set_user_id(cls, user_id: str) -> None:
        get_client().set_user_id(user_id)

    @classmethod
    def set_flag(cls, n: int) -> None:
        get_client().set_flag(n)

    @classmethod
    def trigger(cls, name: str, deep_link: Optional[str] = None) -> None:
        get_client().trigger(name, deep_link)

    @classmethod
    def set_campaign_info_delegate(cls, delegate: Optional[CampaignInfoDelegate]) -> None:
        get_client().set_campaign_info_delegate(delegate)

    @classmethod
    def open_url(cls, url: Any, options: Optional[Dict[str, Any]] = None) -> bool:
        return get_client().open_url(url, options)

    @classmethod
    def dismiss_campaign(cls, campaign_id: str) -> bool:
        return get_client().dismiss_campaign(campaign_id)

    @classmethod
    def set_deep_link_handler(cls, handler: Optional[DeepLinkHandler]) -> None:
        get_client().set_deep_link_handler(handler)

    @classmethod
    def set_campaign_presenter(cls, presenter: CampaignPresenter) -> None:
        get_client().set_campaign_presenter(presenter)

    @classmethod
    def run_pending_callbacks(cls) -> int:
        return get_client().run_pending_callbacks()

    @classmethod
    def flush(cls, timeout: Optional[float] = None) -> bool:
        return get_client().flush(timeout)

    @classmethod
    def shutdown(cls, timeout: Optional[float] = None) -> None:
        get_client().shutdown(timeout)

    # Names used by the mobile SDKs
    sendGoal = send_goal
    setUserAttribute = set_user_attribute
    setUserAttributes = set_user_attributes
    setPrivateUserAttribute = set_private_user_attribute
    setPrivateUserAttributes = set_private_user_attributes
    clearPrivateUserAttributes = clear_private_user_attributes
    setUserID = set_user_id
    setFlag = set_flag
    setCampaignInfoDelegate = set_campaign_info_delegate
    openURL = open_url
