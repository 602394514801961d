from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from app.features.waitlist.exceptions import (
    BestEffortFailure,
    DirectoryError,
    SignupValidationError,
    UpstreamConflict,
    UpstreamFailure,
)
from app.features.waitlist.services.directory import LoopsDirectoryClient
from app.features.waitlist.services.referrer_resolver import ReferrerResolver, build_resolver
from app.features.waitlist.utils.referral_code_generator import (
    BadgeProgress,
    build_referral_link,
    generate_referral_code,
    next_badge,
)
from app.platform.config import Settings
from app.platform.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class WaitlistConfig:
    api_url: str
    api_key: str
    base_url: str
    confirmation_template_id: str = ""
    badge_template_id: str = ""
    timeout: Optional[float] = 10.0
    referrer_lookup: str = "lookup_key"
    scan_max_pages: int = 5
    scan_page_size: int = 50

    @classmethod
    def from_settings(cls, settings: Settings) -> "WaitlistConfig":
        return cls(
            api_url=settings.LOOPS_API_URL,
            api_key=settings.LOOPS_API_KEY,
            base_url=settings.BASE_URL,
            confirmation_template_id=settings.LOOPS_TRANSACTIONAL_ID,
            badge_template_id=settings.LOOPS_BADGE_TRANSACTIONAL_ID,
            timeout=settings.LOOPS_TIMEOUT,
            referrer_lookup=settings.REFERRER_LOOKUP,
            scan_max_pages=settings.REFERRER_SCAN_MAX_PAGES,
            scan_page_size=settings.REFERRER_SCAN_PAGE_SIZE,
        )


@dataclass
class StepOutcome:
    step: str
    ok: bool
    detail: str = ""
    skipped: bool = False


@dataclass
class SignupResult:
    referral_code: str
    referral_link: str
    already_signed_up: bool
    outcomes: List[StepOutcome] = field(default_factory=list)

    def outcome(self, step: str) -> Optional[StepOutcome]:
        return next((o for o in self.outcomes if o.step == step), None)


class SignupOrchestrator:
    """
    Runs one waitlist signup against the contact directory.

    Only the contact create can fail the request. Everything after it
    (confirmation email, referrer credit, badge email) is best-effort: each
    step yields a StepOutcome that is logged and kept on the result.
    """

    def __init__(
        self,
        config: WaitlistConfig,
        directory: LoopsDirectoryClient,
        resolver: Optional[ReferrerResolver] = None,
    ):
        self.config = config
        self.directory = directory
        self.resolver = resolver or build_resolver(
            config.referrer_lookup,
            directory,
            max_pages=config.scan_max_pages,
            page_size=config.scan_page_size,
        )

    async def signup(self, email: Optional[str], referred_by: Optional[str] = None) -> SignupResult:
        """
        Register ``email`` and credit the referrer behind ``referred_by``.

        Raises:
            SignupValidationError: email missing or without an "@"
            UpstreamFailure: the directory rejected the contact create
        """
        email = self._validate(email)
        referred_by = (referred_by or "").strip()

        referral_code = generate_referral_code(email)
        referral_link = build_referral_link(self.config.base_url, referral_code)

        already_signed_up = await self._upsert_contact(
            email, referral_code, referral_link, referred_by
        )
        result = SignupResult(
            referral_code=referral_code,
            referral_link=referral_link,
            already_signed_up=already_signed_up,
        )

        result.outcomes.append(await self._send_confirmation(email, referral_link))
        if referred_by:
            result.outcomes.extend(await self._credit_referrer(referred_by))

        self._log_outcomes(email, result)
        return result

    @staticmethod
    def _validate(email: Optional[str]) -> str:
        if not isinstance(email, str) or "@" not in email:
            raise SignupValidationError()
        return email.strip()

    async def _upsert_contact(
        self, email: str, referral_code: str, referral_link: str, referred_by: str
    ) -> bool:
        properties = {
            "userId": referral_code,
            "source": "waitlist",
            "subscribed": True,
            "referralCode": referral_code,
            "referralLink": referral_link,
            "referredBy": referred_by,
            "referralCount": 0,
            "badge": "",
        }
        try:
            await self.directory.create_contact(email, properties)
        except UpstreamConflict:
            logger.info(f"{email} is already on the waitlist")
            return True
        except DirectoryError as e:
            raise UpstreamFailure() from e

        logger.info(f"Added {email} to the waitlist with code {referral_code}")
        return False

    async def _best_effort(self, step: str, action: Callable[[], Awaitable[str]]) -> StepOutcome:
        try:
            detail = await action()
        except Exception as e:
            failure = BestEffortFailure(step, e)
            logger.error(str(failure))
            return StepOutcome(step=step, ok=False, detail=str(failure))
        return StepOutcome(step=step, ok=True, detail=detail)

    async def _send_confirmation(self, email: str, referral_link: str) -> StepOutcome:
        template_id = self.config.confirmation_template_id
        if not template_id:
            logger.warning("No confirmation template configured, skipping confirmation email")
            return StepOutcome(step="confirmation", ok=True, detail="no template", skipped=True)

        async def send() -> str:
            await self.directory.send_transactional(
                template_id,
                email,
                {"referralLink": referral_link, "unsubscribeUrl": ""},
            )
            return f"sent to {email}"

        return await self._best_effort("confirmation", send)

    async def _credit_referrer(self, referred_by: str) -> List[StepOutcome]:
        outcomes: List[StepOutcome] = []
        referrer: Dict[str, Any] = {}

        async def resolve() -> str:
            found = await self.resolver.resolve(referred_by)
            if found and found.get("email"):
                referrer.update(found)
                return f"resolved to {found['email']}"
            return ""

        resolved = await self._best_effort("resolve_referrer", resolve)
        if resolved.ok and not referrer:
            logger.warning(f"Could not resolve referrer from: {referred_by}")
            resolved.skipped = True
            resolved.detail = "no contact owns this code"
        outcomes.append(resolved)
        if not referrer:
            return outcomes

        referrer_email = referrer["email"]
        progress: Optional[BadgeProgress] = None

        # Read-then-write with no conditional update: two referred signups racing
        # on the same referrer can both write N + 1.
        async def update() -> str:
            nonlocal progress
            progress = next_badge(
                int(referrer.get("referralCount") or 0), referrer.get("badge") or ""
            )
            await self.directory.update_contact(
                referrer_email,
                {"referralCount": progress.new_count, "badge": progress.new_badge},
            )
            return f"{referrer_email} now at {progress.new_count} referrals"

        updated = await self._best_effort("update_referrer", update)
        outcomes.append(updated)
        if not updated.ok or not progress.unlocked:
            return outcomes

        logger.info(f"{referrer_email} unlocked the {progress.new_badge} badge")
        template_id = self.config.badge_template_id
        if not template_id:
            outcomes.append(
                StepOutcome(step="badge_email", ok=True, detail="no template", skipped=True)
            )
            return outcomes

        async def send_badge() -> str:
            await self.directory.send_transactional(
                template_id,
                referrer_email,
                {
                    "badge": progress.new_badge,
                    "referralCount": progress.new_count,
                    "unsubscribeUrl": "",
                },
            )
            return f"{progress.new_badge} badge email sent to {referrer_email}"

        outcomes.append(await self._best_effort("badge_email", send_badge))
        return outcomes

    @staticmethod
    def _log_outcomes(email: str, result: SignupResult) -> None:
        summary = ", ".join(
            f"{o.step}={'skipped' if o.skipped else 'ok' if o.ok else 'failed'}"
            for o in result.outcomes
        )
        logger.info(f"Signup for {email} finished: {summary or 'no follow-up steps'}")
