import asyncio

import numpy as np
import pytest

from visual_search.clustering.tree import ClusterTree
from visual_search.clustering.worker import (
    InlineWorkerChannel,
    ProcessWorkerChannel,
    _OneShotChannel,
    run_cluster_job,
    run_in_worker,
)
from visual_search.errors import ValidationError
from visual_search.models.cluster import ClusterJobRequest


def _request(k=2):
    points = np.array([[0.0, 0.0], [0.1, 0.0], [5.0, 5.0], [5.1, 5.0]])
    return ClusterJobRequest(
        tree=ClusterTree.build(points).to_list(),
        k=k,
        projection=points.tolist(),
        tokens=[["apple"], ["apple", "pie"], ["dog"], ["dog", "walk"]],
    )


def test_run_cluster_job_returns_plain_dict():
    result = run_cluster_job(_request().model_dump())
    assert result["assignment"] == [0, 0, 1, 1]
    assert result["keywords"][0][0] == "apple"
    assert result["keywords"][1][0] == "dog"


def test_run_cluster_job_rejects_bad_k():
    with pytest.raises(ValidationError):
        run_cluster_job(_request(k=9).model_dump())


def test_inline_channel_round_trip():
    response = asyncio.run(run_in_worker(_request(), InlineWorkerChannel))
    assert response.assignment == [0, 0, 1, 1]


def test_channel_accepts_a_single_request():
    async def scenario():
        channel = InlineWorkerChannel()
        await channel.send(_request())
        with pytest.raises(RuntimeError):
            await channel.send(_request())

    asyncio.run(scenario())


def test_channel_is_closed_after_failure():
    channels = []

    def factory():
        channels.append(InlineWorkerChannel())
        return channels[-1]

    with pytest.raises(ValidationError):
        asyncio.run(run_in_worker(_request(k=9), factory))
    assert channels[0]._closed


def test_process_channel_round_trip():
    response = asyncio.run(run_in_worker(_request(), ProcessWorkerChannel))
    assert response.assignment == [0, 0, 1, 1]
    assert response.keywords[1][0] == "dog"


def test_channel_without_a_runner_cannot_be_built():
    class Incomplete(_OneShotChannel):
        pass

    with pytest.raises(TypeError):
        Incomplete()
