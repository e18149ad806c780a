"""
Generic RANSAC loop (model-agnostic).

RANSAC overview:
- Randomly sample a *minimal* subset of correspondences
- Fit a candidate model from that subset (degenerate samples are skipped)
- Score all correspondences by computing a geometric distance
- Mark inliers where distance <= tau
- Keep the model with the most inliers (the first one found wins ties)
- Shrink the iteration budget as the best inlier ratio grows
- Refit using all inliers (least squares) to get the final model, kept only
  while every inlier stays within tau of it

Uses the ModelFitter Protocol from types.py:
    RANSAC works with both homography and fundamental matrix models
"""
from __future__ import annotations

import logging
import math
from typing import Optional, TypeVar

import numpy as np

from .errors import DegenerateSampleError, InsufficientCorrespondencesError, NoConsensusError
from .types import (
    Points2D, Mask2D, ModelFitter, RandomSource, RansacResult, Match,
    as_points, matches_to_points,
)

M = TypeVar("M")

logger = logging.getLogger(__name__)


def required_iterations(
        *,
        beta: float,
        inlier_ratio: float,
        sample_size: int,
        cap: int = 100_000,
) -> int:
    """
    Number of RANSAC iterations needed so that the probability of never
    having drawn an all-inlier minimal sample drops to beta.

    inlier ratio w = (# inliers) / N, minimal sample s:
    - P(sample is all inliers) = w^s
    - P(k samples all contaminated) = (1 - w^s)^k <= beta
    - k >= log(beta) / log(1 - w^s)

    Edge cases:
     - w == 0  -> impossible, return cap
     - w == 1  -> 1 iteration is enough
    """
    b = float(np.clip(beta, 1e-12, 1.0 - 1e-12))
    w = float(np.clip(inlier_ratio, 0.0, 1.0))
    s = int(sample_size)

    if s <= 0:
        raise ValueError("sample_size must be >= 1")

    if w >= 1.0:
        return 1
    if w <= 0.0:
        return int(cap)

    w_to_s = w ** s
    # log1p keeps precision when w^s is tiny
    denominator = math.log1p(-w_to_s)
    if denominator == 0.0:
        return int(cap)

    k = math.ceil(math.log(b) / denominator)
    return int(min(max(1, k), cap))


def ransac(
        model_fitter: ModelFitter[M],
        pts0: Points2D,
        pts1: Points2D,
        *,
        min_samples: Optional[int] = None,
        tau: float = 1.5,
        beta: float = 0.01,
        max_iters: int = 100_000,
        rng: Optional[RandomSource] = None,
        seed: Optional[int] = None,
        refit: bool = True,
) -> RansacResult[M]:
    """
    Run RANSAC to fit a model between pts0 -> pts1.

    Inputs:
    - model_fitter: provides min_samples, fit_minimal, fit_least_squares, residuals
    - pts0, pts1: (N,2) corresponding points (same N)
    - min_samples: minimal sample size (defaults to model_fitter.min_samples;
      homography=4, fundamental=8)
    - tau: inlier distance threshold in pixels (inlier iff distance <= tau)
    - beta: accepted probability of never drawing an all-inlier sample
    - max_iters: initial iteration cap
    - rng: random source for sampling; numpy.random.default_rng(seed) when None
    - refit: refit the final model on the best consensus set

    Returns:
    - RansacResult with best model + inlier mask

    Raises:
    - InsufficientCorrespondencesError if N < min_samples
    - NoConsensusError if no candidate reached min_samples inliers
    """
    # ---------- Input validation ----------
    pts0 = as_points(pts0)
    pts1 = as_points(pts1)
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    if tau < 0.0:
        raise ValueError(f"tau must be >= 0, got {tau}")
    if not 0.0 < beta < 1.0:
        raise ValueError(f"beta must be in (0, 1), got {beta}")
    if max_iters < 1:
        raise ValueError(f"max_iters must be >= 1, got {max_iters}")

    s = int(model_fitter.min_samples if min_samples is None else min_samples)
    n = pts0.shape[0]
    if n < s:
        raise InsufficientCorrespondencesError(required=s, available=n)

    if rng is None:
        rng = np.random.default_rng(seed)

    # Track the best hypothesis
    best_model: Optional[M] = None
    best_inliers: Optional[Mask2D] = None
    best_num_inliers = -1

    # ---------- Adaptive Stopping ----------
    target_iters = int(max_iters)
    budget_history = [target_iters]
    iters_run = 0

    # ---------- Main RANSAC Loop ----------
    while iters_run < target_iters:
        iters_run += 1

        # Uniform sampling with replacement: duplicates make the sample
        # degenerate and the fitter rejects it.
        sample_idx = rng.integers(0, n, size=s)

        try:
            model = model_fitter.fit_minimal(pts0[sample_idx], pts1[sample_idx])
        except DegenerateSampleError:
            continue

        err = model_fitter.residuals(model, pts0, pts1)
        inliers: Mask2D = err <= tau

        num_inliers = int(np.count_nonzero(inliers))
        if num_inliers < s or num_inliers <= best_num_inliers:
            continue

        best_model = model
        best_inliers = inliers
        best_num_inliers = num_inliers

        w = best_num_inliers / float(n)
        iter_needed = required_iterations(
            beta=beta,
            inlier_ratio=w,
            sample_size=s,
            cap=max_iters,
        )
        # Non-increasing, and never below what has already run
        target_iters = min(target_iters, max(iter_needed, iters_run))
        budget_history.append(target_iters)

        logger.debug(
            "better model at iteration %d: inliers=%d/%d, w=%.3f, target_iters=%d",
            iters_run, best_num_inliers, n, w, target_iters,
        )

    if best_model is None or best_inliers is None:
        raise NoConsensusError(iterations=iters_run, min_inliers=s)

    final_model = best_model
    if refit:
        final_model = _refit(model_fitter, best_model, best_inliers, pts0, pts1, tau)

    # RMS on inliers for the final model
    final_err = model_fitter.residuals(final_model, pts0, pts1)[best_inliers]
    final_rms = float(np.sqrt(np.mean(final_err * final_err)))

    logger.info(
        "RANSAC done: %d/%d inliers after %d iterations (rms=%.4f px)",
        best_num_inliers, n, iters_run, final_rms,
    )

    return RansacResult(
        model=final_model,
        inliers=best_inliers,
        num_inliers=best_num_inliers,
        rms_error=final_rms,
        iterations=iters_run,
        threshold=float(tau),
        budget_history=tuple(budget_history),
    )


def _refit(
        model_fitter: ModelFitter[M],
        best_model: M,
        best_inliers: Mask2D,
        pts0: Points2D,
        pts1: Points2D,
        tau: float,
) -> M:
    """
    Least-squares refit on the consensus set.

    The refit is kept only if every consensus point is still within tau of
    it, so the returned model always agrees with the returned inlier set.
    Otherwise (or when the refit is degenerate) the sampled model is kept.
    """
    try:
        model = model_fitter.fit_least_squares(pts0[best_inliers], pts1[best_inliers])
    except DegenerateSampleError:
        logger.warning("least-squares refit on %d inliers is degenerate; keeping the sampled model",
                       int(np.count_nonzero(best_inliers)))
        return best_model

    err = model_fitter.residuals(model, pts0[best_inliers], pts1[best_inliers])
    if not np.all(err <= tau):
        logger.warning("least-squares refit moves %d inliers beyond tau; keeping the sampled model",
                       int(np.count_nonzero(~(err <= tau))))
        return best_model
    return model


def robust_fit(
        model_fitter: ModelFitter[M],
        matches: list[Match],
        **kwargs,
) -> RansacResult[M]:
    """
    RANSAC on a list of matches; the list is filtered to the inliers in place.

    On success, matches keeps exactly the inliers of the best consensus set, in
    their original order. On failure the exception propagates and matches is
    left untouched.

    kwargs are forwarded to ransac().
    """
    pts0, pts1 = matches_to_points(matches)
    result = ransac(model_fitter, pts0, pts1, **kwargs)

    kept = [matches[i] for i in result.inlier_indices]
    matches[:] = kept
    return result
