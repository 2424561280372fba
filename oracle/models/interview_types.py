"""
Built-in interview archetypes.

Each archetype is a fixed question sequence with validation rules and
completion criteria. Definitions are immutable; the QuestionBank service
collects them into a read-only registry.
"""
from oracle.models.interview import (
    CompletionRule,
    InterviewDefinition,
    Question,
    QuestionType,
)

SCALE_1_TO_5 = ("1", "2", "3", "4", "5")

DEFAULT_COMPLETION_CRITERIA = (
    CompletionRule.ALL_REQUIRED_ANSWERED,
    CompletionRule.STEP_LIMIT_REACHED,
)


GENERAL_INTERVIEW = InterviewDefinition(
    type="general",
    description="General purpose interview for basic context gathering",
    max_steps=5,
    questions=(
        Question(
            id="purpose",
            text="What brings you here today?",
            type=QuestionType.TEXT,
            required=True,
            metadata={"category": "intent"},
        ),
        Question(
            id="experience",
            text="How would you rate your experience level with this type of interaction?",
            type=QuestionType.SCALE,
            required=True,
            options=SCALE_1_TO_5,
            metadata={"category": "experience", "scale": "1-5"},
        ),
        Question(
            id="goals",
            text="What are your primary goals for this interaction?",
            type=QuestionType.TEXT,
            required=True,
            metadata={"category": "objectives"},
        ),
        Question(
            id="timeline",
            text="What is your preferred timeline for achieving these goals?",
            type=QuestionType.TEXT,
            required=True,
            metadata={"category": "timeline"},
        ),
        Question(
            id="additional",
            text="Is there any additional information you would like to share?",
            type=QuestionType.TEXT,
            required=False,
            metadata={"category": "additional"},
        ),
    ),
    completion_criteria=DEFAULT_COMPLETION_CRITERIA,
)


TENANT_SCREENING_INTERVIEW = InterviewDefinition(
    type="tenant-screening",
    description="Apartment rental qualification and tenant screening process",
    max_steps=8,
    questions=(
        Question(
            id="contact_info",
            text="Please provide your full name and contact information.",
            type=QuestionType.TEXT,
            metadata={"category": "identification"},
        ),
        Question(
            id="employment_status",
            text="What is your current employment status?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=(
                "Employed full-time",
                "Employed part-time",
                "Self-employed",
                "Student",
                "Retired",
                "Unemployed",
            ),
            metadata={"category": "employment"},
        ),
        Question(
            id="monthly_income",
            text="What is your gross monthly income?",
            type=QuestionType.NUMBER,
            metadata={"category": "financial"},
        ),
        Question(
            id="rental_history",
            text="Do you have previous rental experience? If yes, please describe.",
            type=QuestionType.TEXT,
            metadata={"category": "history"},
        ),
        Question(
            id="reason_for_moving",
            text="What is your primary reason for moving?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=(
                "Job relocation",
                "Upgrading space",
                "Downsizing",
                "Financial reasons",
                "Lifestyle change",
                "Other",
            ),
            metadata={"category": "motivation"},
        ),
        Question(
            id="preferred_move_date",
            text="When would you like to move in?",
            type=QuestionType.DATE,
            metadata={"category": "timeline"},
        ),
        Question(
            id="pets",
            text="Do you have any pets? If yes, please provide details.",
            type=QuestionType.TEXT,
            metadata={"category": "lifestyle"},
        ),
        Question(
            id="references",
            text="Can you provide references from previous landlords or employers?",
            type=QuestionType.YES_NO,
            metadata={"category": "verification"},
        ),
    ),
    completion_criteria=DEFAULT_COMPLETION_CRITERIA,
)


MAINTENANCE_REQUEST_INTERVIEW = InterviewDefinition(
    type="maintenance-request",
    description="Apartment maintenance request gathering and classification process",
    max_steps=7,
    questions=(
        Question(
            id="unit_identification",
            text="Please provide your unit number and building address.",
            type=QuestionType.TEXT,
            metadata={"category": "location"},
        ),
        Question(
            id="issue_description",
            text="Please describe the maintenance issue in detail.",
            type=QuestionType.TEXT,
            metadata={"category": "description"},
        ),
        Question(
            id="issue_category",
            text="What type of maintenance issue is this?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=(
                "Plumbing",
                "Electrical",
                "HVAC",
                "Appliance",
                "Structural",
                "Pest control",
                "Other",
            ),
            metadata={"category": "classification"},
        ),
        Question(
            id="urgency_level",
            text="How urgent is this maintenance request?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=(
                "Emergency (immediate)",
                "Urgent (within 24 hours)",
                "Normal (within a week)",
                "Low priority (when convenient)",
            ),
            metadata={"category": "urgency"},
        ),
        Question(
            id="access_availability",
            text="When are you available to provide access to maintenance staff?",
            type=QuestionType.TEXT,
            metadata={"category": "scheduling"},
        ),
        Question(
            id="contact_preference",
            text="How would you prefer to be contacted about this request?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=("Phone call", "Text message", "Email", "In-person visit"),
            metadata={"category": "communication"},
        ),
        Question(
            id="photos_description",
            text="Would you be able to provide photos of the issue to help maintenance staff prepare?",
            type=QuestionType.YES_NO,
            required=False,
            metadata={"category": "documentation"},
        ),
    ),
    completion_criteria=DEFAULT_COMPLETION_CRITERIA,
)


CUSTOMER_ONBOARDING_INTERVIEW = InterviewDefinition(
    type="customer-onboarding",
    description="New customer onboarding and preference gathering process",
    max_steps=6,
    questions=(
        Question(
            id="welcome",
            text="Welcome! How did you hear about our services?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=(
                "Search engine",
                "Social media",
                "Referral from friend",
                "Advertisement",
                "Website",
                "Other",
            ),
            metadata={"category": "acquisition"},
        ),
        Question(
            id="primary_need",
            text="What is your primary need or interest in our services?",
            type=QuestionType.TEXT,
            metadata={"category": "intent"},
        ),
        Question(
            id="urgency",
            text="How urgent is your need for our services?",
            type=QuestionType.SCALE,
            options=SCALE_1_TO_5,
            metadata={"category": "urgency", "scale": "1-5 (1=low, 5=urgent)"},
        ),
        Question(
            id="budget_range",
            text="What is your budget range for this service?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=(
                "Under $500",
                "$500-$1000",
                "$1000-$2500",
                "$2500-$5000",
                "Over $5000",
                "Not sure",
            ),
            metadata={"category": "budget"},
        ),
        Question(
            id="communication_preference",
            text="What is your preferred method of communication?",
            type=QuestionType.MULTIPLE_SELECT,
            options=("Email", "Phone", "Text message", "Video call", "In-person meeting"),
            metadata={"category": "communication"},
        ),
        Question(
            id="questions",
            text="Do you have any questions about our services or the onboarding process?",
            type=QuestionType.TEXT,
            required=False,
            metadata={"category": "questions"},
        ),
    ),
    completion_criteria=DEFAULT_COMPLETION_CRITERIA,
)


BUILTIN_INTERVIEWS = (
    GENERAL_INTERVIEW,
    TENANT_SCREENING_INTERVIEW,
    MAINTENANCE_REQUEST_INTERVIEW,
    CUSTOMER_ONBOARDING_INTERVIEW,
)
