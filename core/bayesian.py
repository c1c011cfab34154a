"""
Régression linéaire bayésienne (prior conjugué Normal-Gamma)

Mise à jour séquentielle des coefficients de personnalisation avec
quantification de l'incertitude. Chaque mise à jour retourne un
nouveau modèle; l'ancien n'est jamais modifié.
"""
from datetime import datetime
from typing import Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field
from loguru import logger

from config.settings import BAYES_PRIOR_VARIANCE, BAYES_DRIFT_THRESHOLD, BAYES_MIN_DRIFT_SAMPLES
from models.errors import InvalidObservationError


Z_95 = 1.96
PIVOT_EPSILON = 1e-10


class CredibleInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    lower: float
    upper: float

    def width(self) -> float:
        return self.upper - self.lower


class BayesianPrior(BaseModel):
    model_config = ConfigDict(frozen=True)

    mean: list[float]
    precision: list[list[float]]
    alpha: float = 1.0
    beta: float = 1.0


class BayesianPosterior(BayesianPrior):
    credible_intervals: list[CredibleInterval]
    uncertainty: list[float]


class BayesianModel(BaseModel):
    """Modèle complet: prior d'origine, posterior courant et nombre d'observations"""
    model_config = ConfigDict(frozen=True)

    prior: BayesianPrior
    posterior: BayesianPosterior
    observations: int = 0
    last_updated: datetime = Field(default_factory=datetime.now)

    @property
    def feature_count(self) -> int:
        return len(self.posterior.mean)


class Prediction(BaseModel):
    model_config = ConfigDict(frozen=True)

    mean: float
    variance: float
    credible_interval: CredibleInterval


class DriftReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_drift: bool
    severity: float
    recommendation: str


def invert_matrix(matrix) -> np.ndarray:
    """
    Inversion par Gauss-Jordan avec pivot partiel

    Si un pivot tombe sous 1e-10 (matrice singulière ou quasi), retourne
    l'identité au lieu d'échouer.

    Args:
        matrix: Matrice carrée (liste de listes ou ndarray)

    Returns:
        Inverse (ou identité)
    """
    a = np.array(matrix, dtype=float)
    n = a.shape[0]
    augmented = np.hstack([a, np.eye(n)])

    for i in range(n):
        max_row = i + int(np.argmax(np.abs(augmented[i:, i])))
        if max_row != i:
            augmented[[i, max_row]] = augmented[[max_row, i]]

        pivot = augmented[i, i]
        if abs(pivot) < PIVOT_EPSILON:
            logger.warning("Matrice singulière, identité utilisée")
            return np.eye(n)

        augmented[i] = augmented[i] / pivot
        for k in range(n):
            if k != i:
                augmented[k] = augmented[k] - augmented[k, i] * augmented[i]

    return augmented[:, n:]


def initialize_model(
    feature_count: int,
    prior_mean: Optional[Sequence[float]] = None,
    prior_variance: float = BAYES_PRIOR_VARIANCE
) -> BayesianModel:
    """
    Modèle à prior faible (grande variance = faible confiance)

    Args:
        feature_count: Nombre de variables explicatives
        prior_mean: Moyenne a priori (défaut: zéros)
        prior_variance: Variance a priori de chaque coefficient

    Returns:
        BayesianModel sans observation
    """
    if prior_mean is not None and len(prior_mean) != feature_count:
        raise InvalidObservationError(
            f"Moyenne a priori de taille {len(prior_mean)} pour {feature_count} variables"
        )
    mean = [float(m) for m in prior_mean] if prior_mean is not None else [0.0] * feature_count
    precision = (np.eye(feature_count) / prior_variance).tolist()

    prior = BayesianPrior(mean=mean, precision=precision)
    posterior = BayesianPosterior(
        mean=mean,
        precision=precision,
        credible_intervals=[CredibleInterval(lower=-np.inf, upper=np.inf) for _ in mean],
        uncertainty=[1.0] * feature_count
    )
    return BayesianModel(prior=prior, posterior=posterior)


def _check_features(model: BayesianModel, features: Sequence[float]) -> np.ndarray:
    x = np.asarray(features, dtype=float)
    if x.ndim != 1 or x.shape[0] != model.feature_count:
        raise InvalidObservationError(
            f"Observation de taille {x.shape} pour un modèle à {model.feature_count} variables"
        )
    if not np.all(np.isfinite(x)):
        raise InvalidObservationError("Observation non finie")
    return x


def update_model(model: BayesianModel, features: Sequence[float], target: float, weight: float = 1.0) -> BayesianModel:
    """
    Intègre une observation pondérée

    Λ' = Λ + w·xxᵀ ; μ' = Λ'⁻¹(Λμ + w·x·y) ; α' = α + w/2 ;
    β' = β + w·e²/2 avec e l'erreur de prédiction de l'ancien posterior.

    Args:
        model: Modèle courant (non modifié)
        features: Vecteur x
        target: Valeur observée y
        weight: Poids de l'observation (ex: poids du feedback)

    Returns:
        Nouveau BayesianModel

    Raises:
        InvalidObservationError: dimensions incohérentes ou valeurs non finies
    """
    x = _check_features(model, features)
    if not np.isfinite(target) or weight <= 0:
        raise InvalidObservationError(f"Cible {target} ou poids {weight} invalide")

    post = model.posterior
    precision = np.array(post.precision, dtype=float)
    mean = np.array(post.mean, dtype=float)

    new_precision = precision + weight * np.outer(x, x)
    inv_precision = invert_matrix(new_precision)
    new_mean = inv_precision @ (precision @ mean + weight * x * target)

    error = target - float(x @ mean)
    new_alpha = post.alpha + 0.5 * weight
    new_beta = post.beta + 0.5 * weight * error ** 2

    noise_precision = new_alpha / new_beta
    uncertainty = np.sqrt(np.abs(np.diag(inv_precision) / noise_precision))
    intervals = [
        CredibleInterval(lower=float(m - Z_95 * u), upper=float(m + Z_95 * u))
        for m, u in zip(new_mean, uncertainty)
    ]

    return BayesianModel(
        prior=model.prior,
        posterior=BayesianPosterior(
            mean=new_mean.tolist(),
            precision=new_precision.tolist(),
            alpha=new_alpha,
            beta=new_beta,
            credible_intervals=intervals,
            uncertainty=uncertainty.tolist()
        ),
        observations=model.observations + 1
    )


def batch_update(model: BayesianModel, data: Sequence[tuple]) -> BayesianModel:
    """
    Applique les observations dans l'ordre

    Args:
        data: Tuples (features, target) ou (features, target, weight)
    """
    updated = model
    for observation in data:
        features, target, *rest = observation
        updated = update_model(updated, features, target, rest[0] if rest else 1.0)
    return updated


def predict(model: BayesianModel, features: Sequence[float]) -> Prediction:
    """
    Prédiction avec variance prédictive σ² + xᵀΣx

    σ² = β/(α−1) quand α > 1, sinon β/α.
    """
    x = _check_features(model, features)
    post = model.posterior

    mean = float(x @ np.array(post.mean))
    if post.alpha > 1:
        noise_variance = post.beta / (post.alpha - 1)
    else:
        noise_variance = post.beta / post.alpha
    model_variance = float(x @ invert_matrix(post.precision) @ x)

    variance = noise_variance + model_variance
    std = float(np.sqrt(variance))
    return Prediction(
        mean=mean,
        variance=variance,
        credible_interval=CredibleInterval(lower=mean - Z_95 * std, upper=mean + Z_95 * std)
    )


def model_confidence(model: BayesianModel) -> float:
    """Confiance 0-1: volume d'observations (sature à 100) x faible incertitude"""
    observation_confidence = min(model.observations / 100, 1.0)
    avg_uncertainty = float(np.mean(model.posterior.uncertainty)) if model.posterior.uncertainty else 0.0
    return observation_confidence * (1 / (1 + avg_uncertainty))


def detect_drift(
    model: BayesianModel,
    recent_errors: Sequence[float],
    threshold: float = BAYES_DRIFT_THRESHOLD
) -> DriftReport:
    """
    Compare la variance des erreurs récentes au bruit attendu (β/α)

    Args:
        model: Modèle courant
        recent_errors: Erreurs de prédiction récentes
        threshold: Ratio au-delà duquel la dérive est signalée

    Returns:
        DriftReport
    """
    if len(recent_errors) < BAYES_MIN_DRIFT_SAMPLES:
        return DriftReport(has_drift=False, severity=0.0,
                           recommendation="Insufficient data for drift detection")

    expected_noise = model.posterior.beta / model.posterior.alpha
    severity = float(np.var(np.asarray(recent_errors, dtype=float))) / expected_noise
    has_drift = severity > threshold

    if not has_drift:
        recommendation = "Model performing well - no drift detected"
    elif severity > 5:
        recommendation = "Critical drift detected - recommend full model reset with recent data"
    elif severity > 3:
        recommendation = "Significant drift - increase learning rate or add more recent observations"
    else:
        recommendation = "Mild drift - continue monitoring"

    if has_drift:
        logger.warning(f"Dérive du modèle (sévérité {severity:.2f}): {recommendation}")
    return DriftReport(has_drift=has_drift, severity=severity, recommendation=recommendation)
