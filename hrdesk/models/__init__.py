from hrdesk.models.employee import Employee, EmployeeStatus  # noqa: F401
from hrdesk.models.onboarding import OnboardingRecord, OnboardingStatus  # noqa: F401
from hrdesk.models.user_preference import UserPreference  # noqa: F401
