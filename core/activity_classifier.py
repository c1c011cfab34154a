"""
Classification des activités par type de charge physiologique (éligibilité ACWR)
"""
from typing import Iterable, Optional

from loguru import logger

from models.activity import Activity, ActivityClassification, ActivityGroup, LoadAggregate, LoadBreakdown


# Activités aérobies soutenues
CARDIO_ACTIVITIES = frozenset({
    'Ride', 'VirtualRide', 'Handcycle', 'Velomobile', 'InlineSkate', 'Wheelchair',
    'Run', 'VirtualRun', 'TrailRun', 'Walk', 'SpeedWalk', 'Hike',
    'Swim', 'OpenWaterSwim', 'Surfing', 'Windsurf', 'Kitesurf', 'StandUpPaddling',
    'Kayaking', 'Canoeing', 'Rowing', 'RowingMachine',
    'AlpineSki', 'BackcountrySki', 'NordicSki', 'Snowshoe', 'Mountaineering',
    'Orienteering',
})

# Renforcement / fitness: fatigue localisée
STRENGTH_ACTIVITIES = frozenset({
    'Workout', 'WeightTraining', 'Crossfit', 'CircuitTraining',
    'HighIntensityIntervalTraining', 'Yoga', 'Pilates', 'StairStepper', 'Elliptical',
})

# Sports techniques / intermittents
SKILL_ACTIVITIES = frozenset({
    'RockClimbing', 'IceClimbing', 'ViaFerrata',
    'Soccer', 'Football', 'Basketball', 'Baseball', 'Softball', 'Rugby', 'Hockey',
    'IceHockey', 'Cricket', 'Lacrosse', 'Handball', 'Volleyball', 'BeachVolleyball',
    'Tennis', 'TableTennis', 'Squash', 'Racquetball', 'Badminton', 'Pickleball',
    'Boxing', 'Kickboxing', 'MartialArts', 'Wrestling', 'Fencing',
    'Archery', 'Shooting', 'Golf', 'DiscGolf', 'Bowling', 'Dance', 'Equestrian',
    'Fishing', 'Hunting', 'Skateboard',
})

EBIKE_TYPE = 'EBikeRide'
ADVENTURE_RACE_TYPE = 'AdventureRace'
EBIKE_MIN_HEART_RATE = 120

# Types génériques qui ne devraient jamais compter dans l'ACWR
SUSPICIOUS_ELIGIBLE_MARKERS = ('Workout', 'Weight', 'HIIT')

GROUP_EXPLANATIONS = {
    ActivityGroup.CARDIO: "Charge aérobie soutenue: comptée dans l'ACWR",
    ActivityGroup.STRENGTH: "Fatigue musculaire localisée, pas de charge aérobie systémique: hors ACWR",
    ActivityGroup.SKILL: "Charge intermittente et chaotique, le modèle de ratio n'est pas valide: hors ACWR",
    ActivityGroup.EXCLUDED: "Type inconnu ou effort insuffisant: exclu par sécurité",
}


class ActivityClassifier:
    """
    Classifieur d'activités

    Ordre de priorité: cardio, renforcement, technique, cas particuliers
    (vélo électrique, raid), puis exclusion des types inconnus.
    """

    def __init__(
        self,
        cardio: Iterable[str] = CARDIO_ACTIVITIES,
        strength: Iterable[str] = STRENGTH_ACTIVITIES,
        skill: Iterable[str] = SKILL_ACTIVITIES
    ):
        self.cardio = frozenset(cardio)
        self.strength = frozenset(strength)
        self.skill = frozenset(skill)

    def classify(
        self,
        activity_type: str,
        has_heart_rate: bool = False,
        avg_heart_rate: Optional[float] = None,
        is_endurance_mode: bool = False
    ) -> ActivityClassification:
        """
        Classe un type d'activité

        Args:
            activity_type: Type brut (ex: 'Run', 'WeightTraining')
            has_heart_rate: L'activité contient des données cardio
            avg_heart_rate: FC moyenne (bpm)
            is_endurance_mode: Raid déclaré en mode endurance

        Returns:
            ActivityClassification
        """
        if activity_type in self.cardio:
            return ActivityClassification(
                group=ActivityGroup.CARDIO, acwr_eligible=True,
                reason="Sustained aerobic/cardio activity"
            )

        if activity_type in self.strength:
            return ActivityClassification(
                group=ActivityGroup.STRENGTH, acwr_eligible=False,
                reason="Strength/fitness - creates localized fatigue, not systemic aerobic load"
            )

        if activity_type in self.skill:
            return ActivityClassification(
                group=ActivityGroup.SKILL, acwr_eligible=False,
                reason="Skill/technical activity - intermittent load, ACWR invalid"
            )

        if activity_type == EBIKE_TYPE:
            if has_heart_rate and avg_heart_rate is not None and avg_heart_rate > EBIKE_MIN_HEART_RATE:
                return ActivityClassification(
                    group=ActivityGroup.CARDIO, acwr_eligible=True,
                    reason="EBike with elevated HR - aerobic effort detected"
                )
            return ActivityClassification(
                group=ActivityGroup.EXCLUDED, acwr_eligible=False,
                reason="EBike without aerobic effort - excluded"
            )

        if activity_type == ADVENTURE_RACE_TYPE:
            if is_endurance_mode:
                return ActivityClassification(
                    group=ActivityGroup.CARDIO, acwr_eligible=True,
                    reason="Adventure race in endurance mode"
                )
            return ActivityClassification(
                group=ActivityGroup.SKILL, acwr_eligible=False,
                reason="Adventure race - mixed load without endurance mode"
            )

        return ActivityClassification(
            group=ActivityGroup.EXCLUDED, acwr_eligible=False,
            reason=f"Unknown activity type: {activity_type}"
        )

    def classify_activity(self, activity: Activity) -> ActivityClassification:
        """Classe une activité complète"""
        return self.classify(
            activity.type,
            has_heart_rate=activity.has_heart_rate(),
            avg_heart_rate=activity.heart_rate_avg,
            is_endurance_mode=activity.is_endurance_mode
        )

    def aggregate_load(self, activities: Iterable[Activity]) -> LoadAggregate:
        """
        Somme les minutes par groupe et les minutes éligibles ACWR

        Filtre d'éligibilité canonique utilisé par l'analyse de charge.
        Chaque activité compte dans exactement un groupe, donc la somme du
        détail par groupe égale la durée totale.
        """
        breakdown = {group: 0.0 for group in ActivityGroup}
        eligible_minutes = 0.0
        included = 0
        excluded = 0

        for activity in activities:
            classification = self.classify_activity(activity)
            breakdown[classification.group] += activity.duration_minutes
            if classification.acwr_eligible:
                eligible_minutes += activity.duration_minutes
                included += 1
            else:
                excluded += 1

        return LoadAggregate(
            total_eligible_minutes=eligible_minutes,
            included_count=included,
            excluded_count=excluded,
            breakdown=LoadBreakdown(
                cardio=breakdown[ActivityGroup.CARDIO],
                strength=breakdown[ActivityGroup.STRENGTH],
                skill=breakdown[ActivityGroup.SKILL],
                excluded=breakdown[ActivityGroup.EXCLUDED],
            )
        )

    def validate_classification(self, activities: Iterable[Activity]) -> list[str]:
        """
        Diagnostic consultatif: types génériques comptés dans l'ACWR

        Ne lève jamais d'exception, les avertissements sont seulement logués.
        """
        warnings = []
        for activity in activities:
            classification = self.classify_activity(activity)
            if classification.acwr_eligible and any(m in activity.type for m in SUSPICIOUS_ELIGIBLE_MARKERS):
                warnings.append(
                    f"'{activity.type}' is marked ACWR-eligible but looks like strength/interval work"
                )
        for warning in warnings:
            logger.warning(warning)
        return warnings


def get_classification_explanation(group: ActivityGroup) -> str:
    """Explication lisible d'un groupe de charge"""
    return GROUP_EXPLANATIONS[group]


# Helper pour usage simple
_default_classifier = ActivityClassifier()


def classify_activity(
    activity_type: str,
    has_heart_rate: bool = False,
    avg_heart_rate: Optional[float] = None,
    is_endurance_mode: bool = False
) -> ActivityClassification:
    return _default_classifier.classify(activity_type, has_heart_rate, avg_heart_rate, is_endurance_mode)


def aggregate_load(activities: Iterable[Activity]) -> LoadAggregate:
    return _default_classifier.aggregate_load(activities)
