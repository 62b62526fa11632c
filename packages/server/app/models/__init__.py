# SQLModel definitions, imported here to ensure metadata is populated for create_all.
from .base import CreatedAtMixin, IntIDMixin  # noqa: F401
from .user import User  # noqa: F401
from .team import Team  # noqa: F401
from .membership import CustomRole, Membership  # noqa: F401
from .verification_token import VerificationToken  # noqa: F401
from .organization_onboarding import OrganizationOnboarding  # noqa: F401
from .assignment_reason import AssignmentReason, RoutingFormResponseDenormalized  # noqa: F401
