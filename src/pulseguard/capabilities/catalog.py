"""Built-in capability definitions."""

from pulseguard.capabilities.types import (
    CapabilityDefinition,
    CapabilityParameter,
    Category,
    Sensitivity,
)

MOODS = ("great", "good", "okay", "poor", "crisis")
ENTRY_TYPES = ("symptom", "medication", "vital", "note")
REMINDER_TYPES = ("medication", "check_in", "appointment", "other")
CARE_LOG_TYPES = (
    "visit",
    "procedure",
    "test",
    "diagnosis",
    "treatment",
    "hospital_stay",
    "emergency_visit",
    "therapy_session",
    "other",
)
VISIT_TYPES = ("appointment", "emergency", "follow_up", "consultation")
CLINICAL_TYPES = ("lab_test", "scan", "procedure", "follow_up", "screening", "other")
POSITIONS = ("sitting", "standing", "lying", "other")

_TEXT = CapabilityParameter(
    "text",
    "string",
    "The user's request in their own words",
    required=True,
)

LOG_MEDICATION = CapabilityDefinition(
    id="log_medication",
    name="Log Medication",
    description=(
        "Log when the user takes medication. Only use when the user explicitly "
        "mentions taking it."
    ),
    category=Category.HEALTH_LOGGING,
    sensitivity=Sensitivity.HIGH,
    requires_confirmation=False,
    parameters=(
        CapabilityParameter(
            "medication_name", "string", "Name of the medication", required=True, example="Aspirin"
        ),
        CapabilityParameter("dose", "string", "Dosage taken", example="1 tablet"),
        CapabilityParameter(
            "taken_at", "string", "ISO timestamp when it was taken (defaults to now)"
        ),
    ),
    safety_notes=(
        "Only log if the user explicitly states they took the medication",
        "Do not infer medication from symptoms alone",
    ),
)

CREATE_CHECK_IN = CapabilityDefinition(
    id="create_check_in",
    name="Create Daily Check-In",
    description="Create or update today's check-in with mood, symptoms and notes.",
    category=Category.HEALTH_LOGGING,
    sensitivity=Sensitivity.MEDIUM,
    requires_confirmation=False,
    parameters=(
        CapabilityParameter("mood", "string", "User mood", enum=MOODS, example="good"),
        CapabilityParameter(
            "symptoms", "array", "Symptom names", example=["headache", "fatigue"]
        ),
        CapabilityParameter(
            "medication_taken", "boolean", "Whether medication was taken today", example=True
        ),
        CapabilityParameter("notes", "string", "Additional notes"),
    ),
    safety_notes=(
        "Do not diagnose symptoms",
        "Crisis mood triggers additional safety handling",
    ),
)

UPDATE_MOOD = CapabilityDefinition(
    id="update_mood",
    name="Update Mood",
    description="Quick mood update when the user clearly states how they feel.",
    category=Category.HEALTH_LOGGING,
    sensitivity=Sensitivity.LOW,
    requires_confirmation=False,
    parameters=(
        CapabilityParameter("mood", "string", "User mood", required=True, enum=MOODS, example="good"),
    ),
    safety_notes=(
        "Crisis mood is flagged for immediate attention",
        "Only use explicit statements, never infer mood",
    ),
)

SAVE_HEALTH_ENTRY = CapabilityDefinition(
    id="save_health_entry",
    name="Save Health Entry",
    description="Save a general health note, symptom or health event.",
    category=Category.HEALTH_LOGGING,
    sensitivity=Sensitivity.MEDIUM,
    requires_confirmation=False,
    parameters=(
        CapabilityParameter(
            "entry_type", "string", "Type of entry", required=True, enum=ENTRY_TYPES, example="symptom"
        ),
        CapabilityParameter(
            "data",
            "object",
            "Entry data (varies by entry_type)",
            required=True,
            example={"symptoms": ["headache"], "severity": "mild"},
        ),
    ),
    safety_notes=("Do not diagnose or interpret symptoms",),
)

CREATE_REMINDER = CapabilityDefinition(
    id="create_reminder",
    name="Create Reminder",
    description="Create a recurring reminder for medication, check-ins or appointments.",
    category=Category.REMINDERS,
    sensitivity=Sensitivity.LOW,
    requires_confirmation=True,
    parameters=(
        CapabilityParameter("title", "string", "Reminder title", required=True, example="Take medication"),
        CapabilityParameter(
            "time", "string", "Time in HH:MM format (24-hour)", required=True, example="09:00"
        ),
        CapabilityParameter(
            "days", "array", "Days of week (0=Sunday, 6=Saturday)", example=[1, 2, 3, 4, 5]
        ),
        CapabilityParameter(
            "reminder_type", "string", "Type of reminder", enum=REMINDER_TYPES, example="medication"
        ),
        CapabilityParameter("description", "string", "Optional reminder description"),
    ),
    safety_notes=("Verify reminder details with the user before creating",),
)

SCHEDULE_REMINDER = CapabilityDefinition(
    id="schedule_reminder",
    name="Schedule Reminder",
    description=(
        "Schedule a reminder from the user's own phrasing, such as "
        "'remind me to call the clinic in 2 weeks' or 'every weekday at 8am'."
    ),
    category=Category.REMINDERS,
    sensitivity=Sensitivity.LOW,
    requires_confirmation=True,
    parameters=(_TEXT,),
    safety_notes=("The parsed schedule is shown to the user before anything is saved",),
    free_text=True,
)

CREATE_CARE_LOG = CapabilityDefinition(
    id="create_care_log",
    name="Create Care Log",
    description="Log a healthcare visit, procedure, test or medical event.",
    category=Category.CARE_RECORDS,
    sensitivity=Sensitivity.CRITICAL,
    requires_confirmation=True,
    parameters=(
        CapabilityParameter(
            "log_type", "string", "Type of care log", required=True, enum=CARE_LOG_TYPES, example="visit"
        ),
        CapabilityParameter("title", "string", "Title of the entry", required=True, example="Annual checkup"),
        CapabilityParameter(
            "occurred_at",
            "string",
            "ISO timestamp when the event occurred",
            required=True,
            example="2024-01-15T10:00:00Z",
        ),
        CapabilityParameter("diagnosis", "string", "Diagnosis or findings, only if stated"),
        CapabilityParameter("treatment", "string", "Treatment received, only if stated"),
        CapabilityParameter("notes", "string", "Additional notes"),
    ),
    safety_notes=(
        "Always confirm before creating care logs",
        "Do not infer diagnoses; only log what the user states",
        "Medical records are permanent, accuracy is critical",
    ),
)

LOG_DOCTOR_VISIT = CapabilityDefinition(
    id="log_doctor_visit",
    name="Log Doctor Visit",
    description="Log a visit to a doctor, clinic or hospital.",
    category=Category.CARE_RECORDS,
    sensitivity=Sensitivity.HIGH,
    requires_confirmation=True,
    parameters=(
        CapabilityParameter(
            "visit_type", "string", "Type of visit", required=True, enum=VISIT_TYPES, example="appointment"
        ),
        CapabilityParameter(
            "date", "string", "Date of visit (YYYY-MM-DD)", required=True, example="2024-01-15"
        ),
        CapabilityParameter("notes", "string", "Notes about the visit"),
    ),
    safety_notes=(
        "Do not infer visit details, only log explicit information",
        "Verify dates are correct",
    ),
)

LOG_DOCTOR_VISIT_OUTCOME = CapabilityDefinition(
    id="log_doctor_visit_outcome",
    name="Log Doctor Visit Outcome",
    description=(
        "Record what happened at a doctor visit from the user's description, "
        "with a follow-up reminder when one was scheduled."
    ),
    category=Category.CARE_RECORDS,
    sensitivity=Sensitivity.CRITICAL,
    requires_confirmation=True,
    parameters=(
        _TEXT,
        CapabilityParameter(
            "visit_date", "string", "Visit date (YYYY-MM-DD) when the user gave one"
        ),
    ),
    safety_notes=(
        "Diagnosis and treatment are recorded only when stated explicitly",
        "Always confirm before writing",
    ),
    free_text=True,
)

PARSE_DOCTOR_RECOMMENDATION = CapabilityDefinition(
    id="parse_doctor_recommendation",
    name="Parse Doctor Recommendation",
    description=(
        "Turn a doctor's instruction such as 'check your blood pressure daily' "
        "or 'come back in 3 months' into a proposed reminder."
    ),
    category=Category.REMINDERS,
    sensitivity=Sensitivity.MEDIUM,
    requires_confirmation=True,
    parameters=(_TEXT,),
    safety_notes=("The user approves the proposed schedule before it is saved",),
    free_text=True,
)

ADD_CLINICAL_DATE = CapabilityDefinition(
    id="add_clinical_date",
    name="Add Clinical Date",
    description="Add an upcoming lab test, scan, procedure, follow-up or screening.",
    category=Category.CARE_RECORDS,
    sensitivity=Sensitivity.MEDIUM,
    requires_confirmation=True,
    parameters=(
        CapabilityParameter(
            "clinical_date",
            "string",
            "Date of the event (YYYY-MM-DD or ISO timestamp)",
            required=True,
            example="2024-03-01",
        ),
        CapabilityParameter(
            "description", "string", "What the event is", required=True, example="Blood test"
        ),
        CapabilityParameter(
            "clinical_type", "string", "Type of clinical event", enum=CLINICAL_TYPES, example="lab_test"
        ),
        CapabilityParameter("location", "string", "Where it takes place"),
        CapabilityParameter("provider_name", "string", "Healthcare provider or facility"),
        CapabilityParameter("preparation_notes", "string", "Preparation instructions"),
        CapabilityParameter("notes", "string", "Additional notes"),
        CapabilityParameter(
            "reminder_enabled", "boolean", "Whether to remind the user (defaults to true)"
        ),
    ),
)

LOG_BLOOD_PRESSURE = CapabilityDefinition(
    id="log_blood_pressure",
    name="Log Blood Pressure",
    description="Log a blood pressure reading. Abnormal values are flagged automatically.",
    category=Category.HEALTH_LOGGING,
    sensitivity=Sensitivity.MEDIUM,
    requires_confirmation=False,
    parameters=(
        CapabilityParameter(
            "systolic", "number", "Top number, 1-300", required=True, example=120
        ),
        CapabilityParameter(
            "diastolic", "number", "Bottom number, 1-200 and below systolic", required=True, example=80
        ),
        CapabilityParameter("pulse", "number", "Pulse in beats per minute, 40-200"),
        CapabilityParameter("position", "string", "Position during measurement", enum=POSITIONS),
        CapabilityParameter("notes", "string", "Notes such as 'after exercise'"),
    ),
    safety_notes=("Never correct a reading the user reported; ask instead",),
)

LOG_HYDRATION = CapabilityDefinition(
    id="log_hydration",
    name="Log Hydration",
    description="Log water intake in milliliters (glass 250, bottle 500, liter 1000).",
    category=Category.HEALTH_LOGGING,
    sensitivity=Sensitivity.LOW,
    requires_confirmation=False,
    parameters=(
        CapabilityParameter(
            "amount", "number", "Amount in milliliters, 1-10000", required=True, example=250
        ),
        CapabilityParameter("notes", "string", "Notes such as 'with breakfast'"),
    ),
)

GET_TODAY_SUMMARY = CapabilityDefinition(
    id="get_today_summary",
    name="Get Today Summary",
    description=(
        "Read today's check-in, medications, blood pressure readings and "
        "hydration total. Does not modify data."
    ),
    category=Category.READ_ONLY,
    sensitivity=Sensitivity.LOW,
    requires_confirmation=False,
)

DEFAULT_CAPABILITIES: tuple[CapabilityDefinition, ...] = (
    LOG_MEDICATION,
    CREATE_CHECK_IN,
    UPDATE_MOOD,
    SAVE_HEALTH_ENTRY,
    CREATE_REMINDER,
    SCHEDULE_REMINDER,
    CREATE_CARE_LOG,
    LOG_DOCTOR_VISIT,
    LOG_DOCTOR_VISIT_OUTCOME,
    PARSE_DOCTOR_RECOMMENDATION,
    ADD_CLINICAL_DATE,
    LOG_BLOOD_PRESSURE,
    LOG_HYDRATION,
    GET_TODAY_SUMMARY,
)
