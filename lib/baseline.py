from __future__ import annotations

from lib.types import BaselineBounds, LinearModel, PredictedCost, require_finite


def predict_baseline(
    model: LinearModel,
    temperature: float,
    bounds: BaselineBounds | None = None,
) -> float:
    """Expected baseline usage at *temperature*, clamped to *bounds*.

    The clamp keeps extrapolation at extreme temperatures physically
    plausible (e.g. a warm day would otherwise predict negative usage).

    Example::

        predict_baseline(LinearModel(50.75, -0.888), 30.0)    # ~24.11 kWh
        predict_baseline(LinearModel(50.75, -0.888), 1000.0)  # 5.0 (clamped)
    """
    temperature = require_finite("temperature", temperature)
    bounds = bounds or BaselineBounds()
    return bounds.clamp(model.evaluate(temperature))


def predict_daily_cost(
    temperature: float,
    model: LinearModel,
    unit_rate: float,
    bounds: BaselineBounds | None = None,
) -> PredictedCost:
    """Cost of a day whose usage sits exactly at the baseline.

    With no excess there is nothing to allocate, so each occupant pays half.
    """
    baseline_usage = predict_baseline(model, temperature, bounds)
    baseline_cost = baseline_usage * unit_rate
    return PredictedCost(
        temperature=temperature,
        baseline_usage=baseline_usage,
        baseline_cost=baseline_cost,
        share_each=baseline_cost / 2,
    )
