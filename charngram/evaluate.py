"""
Loss and perplexity of a model on a data split.

For every window we ask the model how likely the actual last token was,
given the tokens before it, and average -log of that probability.
Perplexity is exp(mean loss): 1.0 means the model was always certain and
always right. If the model ever gave the true target zero probability,
the loss (and perplexity) is inf.
"""

import math
from dataclasses import dataclass

import torch

from charngram.errors import EmptySplit


@dataclass(frozen=True)
class EvalResult:
    mean_nll: float
    perplexity: float
    num_windows: int


@torch.no_grad()
def evaluate(model, windows) -> EvalResult:
    """
    Consume every window from `windows` (e.g. a DataLoader) and score it.

    Raises EmptySplit if there was nothing to score.
    """
    total = 0.0
    count = 0
    for window in windows:
        context, target = window[:-1], window[-1]
        probs = model.infer(context)
        total += -torch.log(probs[target].double()).item()
        count += 1

    if count == 0:
        raise EmptySplit("split produced no windows to evaluate")

    mean_nll = total / count
    return EvalResult(mean_nll=mean_nll, perplexity=math.exp(mean_nll), num_windows=count)
