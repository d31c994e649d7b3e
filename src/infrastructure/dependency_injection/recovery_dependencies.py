"""Dependency factories for the recovery and invitation services.

Every store handle is built per request from the request's ``AsyncSession``
and passed into the component constructors; nothing in the domain layer
reaches for a module-level session or client. Tests swap single factories
through ``app.dependency_overrides`` (clock, code generator, notifier,
rate limiter).
"""

from functools import lru_cache
from typing import Annotated, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import settings
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.interfaces.notifier import INotifier
from src.domain.interfaces.rate_limiter import IRateLimiter
from src.domain.interfaces.repositories import (
    IAdminTokenRepository,
    IAuditRepository,
    IInvitationRepository,
    IRecoveryRecordRepository,
    IUserRepository,
)
from src.domain.services.admin.admin_password_reset_service import AdminPasswordResetService
from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.services.invitation.invitation_service import InvitationService
from src.domain.services.password_reset.password_reset_request_service import (
    PasswordResetRequestService,
)
from src.domain.services.password_reset.password_reset_service import PasswordResetService
from src.domain.services.recovery.admin_token_issuer import AdminTokenIssuer
from src.domain.services.recovery.code_issuer import CodeIssuer
from src.domain.services.recovery.code_verifier import CodeVerifier
from src.domain.services.recovery.outcome_applier import (
    InvitationAcceptApplier,
    PasswordResetApplier,
)
from src.domain.value_objects.recovery_policy import RecoveryPolicy
from src.domain.value_objects.verification_code import VerificationCode
from src.infrastructure.database.async_db import get_db
from src.infrastructure.rate_limiting import InMemoryRateLimiter, RedisFixedWindowRateLimiter
from src.infrastructure.redis import get_redis_client
from src.infrastructure.repositories import (
    AdminTokenRepository,
    AuditRepository,
    InvitationRepository,
    RecoveryRecordRepository,
    UserRepository,
)
from src.infrastructure.services.authentication import AccessTokenVerifier, LocalAuthProvider
from src.infrastructure.services.email import EmailNotifier
from src.utils.clock import Clock, utcnow

# ---------------------------------------------------------------------------
# Type aliases for dependency injection
# ---------------------------------------------------------------------------

AsyncDB = Annotated[AsyncSession, Depends(get_db)]

# ---------------------------------------------------------------------------
# Process-wide collaborators
# ---------------------------------------------------------------------------


def get_clock() -> Clock:
    return utcnow


def get_code_generator() -> Callable[[], VerificationCode]:
    return VerificationCode.generate


def get_recovery_policy() -> RecoveryPolicy:
    return RecoveryPolicy.from_settings(settings)


@lru_cache(maxsize=1)
def get_notifier() -> INotifier:
    return EmailNotifier()


@lru_cache(maxsize=1)
def get_rate_limiter() -> IRateLimiter:
    """Limiter shared by every request of the process.

    The Redis backend makes the counters shared across workers as well.
    """
    if settings.RATE_LIMIT_BACKEND == "memory":
        return InMemoryRateLimiter()
    return RedisFixedWindowRateLimiter(get_redis_client())


ClockDep = Annotated[Clock, Depends(get_clock)]
PolicyDep = Annotated[RecoveryPolicy, Depends(get_recovery_policy)]
NotifierDep = Annotated[INotifier, Depends(get_notifier)]

# ---------------------------------------------------------------------------
# Infrastructure Layer Dependencies
# ---------------------------------------------------------------------------


def get_user_repository(db: AsyncDB) -> IUserRepository:
    return UserRepository(db)


def get_recovery_record_repository(db: AsyncDB) -> IRecoveryRecordRepository:
    return RecoveryRecordRepository(db)


def get_invitation_repository(db: AsyncDB) -> IInvitationRepository:
    return InvitationRepository(db)


def get_audit_repository(db: AsyncDB) -> IAuditRepository:
    return AuditRepository(db)


def get_admin_token_repository(db: AsyncDB) -> IAdminTokenRepository:
    return AdminTokenRepository(db)


def get_auth_provider(
    user_repository: IUserRepository = Depends(get_user_repository),
) -> IAuthProvider:
    return LocalAuthProvider(user_repository)


def get_access_token_verifier(
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> AccessTokenVerifier:
    return AccessTokenVerifier(auth_provider)


StoreDep = Annotated[IRecoveryRecordRepository, Depends(get_recovery_record_repository)]
AuthProviderDep = Annotated[IAuthProvider, Depends(get_auth_provider)]

# ---------------------------------------------------------------------------
# Protocol components
# ---------------------------------------------------------------------------


def get_audit_recorder(
    clock: ClockDep,
    audit_repository: IAuditRepository = Depends(get_audit_repository),
) -> AuditRecorder:
    return AuditRecorder(audit_repository, clock=clock)


def get_code_issuer(
    store: StoreDep,
    notifier: NotifierDep,
    policy: PolicyDep,
    clock: ClockDep,
    code_generator: Callable[[], VerificationCode] = Depends(get_code_generator),
) -> CodeIssuer:
    return CodeIssuer(store, notifier, policy, clock=clock, code_generator=code_generator)


def get_code_verifier(store: StoreDep, policy: PolicyDep, clock: ClockDep) -> CodeVerifier:
    return CodeVerifier(store, policy, clock=clock)


def get_password_reset_applier(
    store: StoreDep,
    auth_provider: AuthProviderDep,
    clock: ClockDep,
    audit_recorder: AuditRecorder = Depends(get_audit_recorder),
) -> PasswordResetApplier:
    return PasswordResetApplier(store, auth_provider, audit_recorder, clock=clock)


def get_invitation_accept_applier(
    store: StoreDep,
    auth_provider: AuthProviderDep,
    clock: ClockDep,
    audit_recorder: AuditRecorder = Depends(get_audit_recorder),
    invitation_repository: IInvitationRepository = Depends(get_invitation_repository),
) -> InvitationAcceptApplier:
    return InvitationAcceptApplier(
        store, auth_provider, audit_recorder, invitation_repository, clock=clock
    )


def get_admin_token_issuer(
    auth_provider: AuthProviderDep,
    notifier: NotifierDep,
    policy: PolicyDep,
    clock: ClockDep,
    token_repository: IAdminTokenRepository = Depends(get_admin_token_repository),
) -> AdminTokenIssuer:
    return AdminTokenIssuer(
        token_repository,
        auth_provider,
        notifier,
        policy,
        reset_url_base=settings.APP_URL,
        clock=clock,
    )

# ---------------------------------------------------------------------------
# Domain Service Dependencies
# ---------------------------------------------------------------------------


def get_password_reset_request_service(
    auth_provider: AuthProviderDep,
    code_issuer: CodeIssuer = Depends(get_code_issuer),
) -> PasswordResetRequestService:
    return PasswordResetRequestService(auth_provider, code_issuer)


def get_password_reset_service(
    auth_provider: AuthProviderDep,
    clock: ClockDep,
    code_verifier: CodeVerifier = Depends(get_code_verifier),
    applier: PasswordResetApplier = Depends(get_password_reset_applier),
    admin_token_issuer: AdminTokenIssuer = Depends(get_admin_token_issuer),
    audit_recorder: AuditRecorder = Depends(get_audit_recorder),
) -> PasswordResetService:
    return PasswordResetService(
        code_verifier,
        applier,
        admin_token_issuer,
        auth_provider,
        audit_recorder,
        clock=clock,
    )


def get_invitation_service(
    store: StoreDep,
    auth_provider: AuthProviderDep,
    notifier: NotifierDep,
    policy: PolicyDep,
    clock: ClockDep,
    invitation_repository: IInvitationRepository = Depends(get_invitation_repository),
    code_issuer: CodeIssuer = Depends(get_code_issuer),
    code_verifier: CodeVerifier = Depends(get_code_verifier),
    applier: InvitationAcceptApplier = Depends(get_invitation_accept_applier),
    audit_recorder: AuditRecorder = Depends(get_audit_recorder),
) -> InvitationService:
    return InvitationService(
        invitation_repository,
        store,
        auth_provider,
        code_issuer,
        code_verifier,
        applier,
        audit_recorder,
        notifier,
        policy,
        invitation_url_base=settings.APP_URL,
        clock=clock,
    )


def get_admin_password_reset_service(
    token_issuer: AdminTokenIssuer = Depends(get_admin_token_issuer),
    audit_recorder: AuditRecorder = Depends(get_audit_recorder),
) -> AdminPasswordResetService:
    return AdminPasswordResetService(token_issuer, audit_recorder)
