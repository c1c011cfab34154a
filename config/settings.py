"""
Configuration settings for the adaptive training decision engine
"""
import os
from dotenv import load_dotenv
from pathlib import Path

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv('TRAINING_ENGINE_DATA_DIR', BASE_DIR / "data"))
FEEDBACK_LOG_FILE = DATA_DIR / "feedback_log.jsonl"

# API Credentials
OPENWEATHER_API_KEY = os.getenv('OPENWEATHER_API_KEY', '')

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('LOG_FILE')

# Appels externes (météo, géocodage)
EXTERNAL_CALL_TIMEOUT_SECONDS = float(os.getenv('EXTERNAL_CALL_TIMEOUT_SECONDS', '3'))
REQUEST_CACHE_TTL_SECONDS = float(os.getenv('REQUEST_CACHE_TTL_SECONDS', '5'))
CONTEXT_REFRESH_HOURS = float(os.getenv('CONTEXT_REFRESH_HOURS', '1'))
EVENT_HISTORY_SIZE = int(os.getenv('EVENT_HISTORY_SIZE', '500'))

# Training defaults
DEFAULT_DAYS_PER_WEEK = 3
DEFAULT_LONG_RUN_DAY = 6  # Samedi (1=lundi)
DEFAULT_WEEKLY_KM = 40.0
DEFAULT_WEEKLY_KM_CAT2 = 60.0
MAX_WEEKLY_KM_CEILING = 120.0

# Ordre de sélection des jours de repos dérivés (1=lundi ... 7=dimanche)
REST_DAY_PRIORITY = [1, 5, 3, 7, 2, 4, 6]

# ACWR (Acute:Chronic Workload Ratio) thresholds
ACWR_OPTIMAL_MIN = 0.8
ACWR_OPTIMAL_MAX = 1.3
ACWR_CAUTION_MAX = 1.5
ACWR_HIGH_RISK_MAX = 1.8
ACWR_TAPER_BELOW = 0.6
ACWR_ACUTE_DAYS = 7
ACWR_CHRONIC_DAYS = 28
ACWR_TREND_DELTA = 0.15
ACWR_VOLATILITY_MAX = 0.35

# Conversion des événements calendrier en charge "km-équivalent"
EVENT_LOAD = {
    'pace_min_per_km': 6.0,
    'meters_per_km_equivalent': 100.0,
    'priority_factors': {'A': 1.5, 'B': 1.2, 'C': 1.0},
    'default_priority': 'B',
}

# Phase d'entraînement en fonction du nombre de jours avant la course
PHASE_THRESHOLDS = {
    'base': 112,      # > 112 jours
    'build': 56,      # 57-112 jours
    'peak': 21,       # 22-56 jours
    'taper': 7,       # 8-21 jours
    'recovery_window': 7,  # course terminée depuis <= 7 jours
}

# Multiplicateurs de volume hebdomadaire par phase
PHASE_VOLUME_MULTIPLIERS = {
    'base': 0.85,
    'build': 0.95,
    'peak': 1.0,
    'taper': 0.65,
    'race_week': 0.3,
    'recovery': 0.5,
    'maintenance': 0.85,
}
PROGRESSION_CAP = 0.10
RECOVERY_WEEK_REDUCTION = 0.20

# Motivation: poids relatifs des sources
MOTIVATION_SOURCE_WEIGHTS = {
    'onboarding': 0.6,
    'training': 0.8,
}
MOTIVATION_HISTORY_WEEKS = 8

# Feedback weights (multiplicateurs d'importance)
FEEDBACK_WEIGHTS = {
    'training_normal': 1.0,
    'training_key_workout': 1.5,
    'race_simulation': 3.0,
    'race': 5.0,
    'dnf': 8.0,
}
FEEDBACK_RECENCY_DAYS = 30

# Heat stress (°C, température effective)
HEAT_STRESS_BANDS = [
    (25.0, 'green'),
    (28.0, 'yellow'),
    (32.0, 'orange'),
    (38.0, 'red'),
]
DEFAULT_WEATHER = {
    'temperature': 20.0,
    'humidity': 50.0,
    'wind_speed': 5.0,
    'conditions': 'Clear',
    'feels_like': 20.0,
}

# Historique d'entraînement
EXPECTED_SESSIONS_PER_WEEK = 5
HARD_SESSION_THRESHOLDS = {
    'heart_rate': 160,
    'distance_km': 15.0,
    'pace_min_per_km': 5.5,
}
DEFAULT_FATIGUE = 5.0
DEFAULT_DAYS_SINCE_HARD = 7

# Bayesian personalization
BAYES_PRIOR_VARIANCE = 1000.0
BAYES_DRIFT_THRESHOLD = 2.0
BAYES_MIN_DRIFT_SAMPLES = 5
