"""Quiz-related constants shared across the session, grading and storage layers."""

DEFAULT_PASSING_SCORE: float = 0.0
DEFAULT_AUTO_SAVE_INTERVAL_SECONDS: float = 0.0
TIMER_TICK_SECONDS: float = 1.0

NO_ANSWER_FEEDBACK: str = "No answer provided"
MANUAL_GRADING_FEEDBACK: str = "This question requires manual grading"

# Linear congruential generator used for seeded shuffles.
LCG_MULTIPLIER: int = 9301
LCG_INCREMENT: int = 49297
LCG_MODULUS: int = 233280
RIGHT_SIDE_SEED_OFFSET: int = 1000
