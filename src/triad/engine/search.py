"""Reference Monte-Carlo tree search driver.

The engine only talks to a search through the `TreeSearch` protocol in
`triad.engine.ai`; this module is one implementation of it. Playouts are
spread over a thread pool, each one walking the shared tree with its own
cloned state. Positions reached by different move orders share a node
through a transposition table keyed by the state fingerprint, and a
revisited position re-uses its stored evaluation.
"""

from __future__ import annotations

import logging
import math
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .actions import Move
from .ai import Evaluator, SearchConfig, SearchState
from .types import Owner

logger = logging.getLogger(__name__)


@dataclass
class _Node:
    player: Owner
    moves: list[Move]
    evaluation: float
    visits: list[int] = field(default_factory=list)
    rewards: list[float] = field(default_factory=list)
    children: list["_Node | None"] = field(default_factory=list)
    total_visits: int = 0

    def __post_init__(self) -> None:
        n = len(self.moves)
        self.visits = [0] * n
        self.rewards = [0.0] * n
        self.children = [None] * n


class UCTSearch:
    def __init__(self, config: SearchConfig | None = None) -> None:
        self.config = config or SearchConfig()
        self._lock = threading.Lock()
        self._table: dict[int, _Node] = {}

    def best_move(self, root: SearchState, evaluator: Evaluator) -> Move | None:
        if root.is_terminal():
            return None
        moves = root.available_moves()
        if not moves:
            return None
        if len(moves) == 1:
            return moves[0]

        self._table = {}
        root_node = self._node_for(root, evaluator)
        rng = random.Random(self.config.seed)

        workers = max(1, self.config.workers)
        playouts = max(1, self.config.playouts)
        shares = [playouts // workers + (1 if i < playouts % workers else 0) for i in range(workers)]
        seeds = [rng.randrange(2**32) for _ in shares]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self._run, root, root_node, evaluator, count, random.Random(seed))
                for count, seed in zip(shares, seeds)
                if count > 0
            ]
            for fut in futures:
                fut.result()

        best = max(
            range(len(root_node.moves)),
            key=lambda i: (root_node.visits[i], root_node.rewards[i]),
        )
        logger.debug(
            "Search done: %d playouts, %d positions, best visits %d",
            root_node.total_visits,
            len(self._table),
            root_node.visits[best],
        )
        return root_node.moves[best]

    def _node_for(self, state: SearchState, evaluator: Evaluator) -> _Node:
        key = state.transposition_hash()
        with self._lock:
            known = self._table.get(key)
            if known is not None:
                known.evaluation = evaluator.evaluate_existing_state(state, known.evaluation)
                return known
        moves = state.available_moves()
        _, value = evaluator.evaluate_new_state(state, moves)
        node = _Node(player=state.current_player(), moves=moves, evaluation=value)
        with self._lock:
            return self._table.setdefault(key, node)

    def _select(self, node: _Node, rng: random.Random) -> int:
        untried = [i for i, v in enumerate(node.visits) if v == 0]
        if untried:
            return rng.choice(untried)
        log_total = math.log(node.total_visits)
        c = self.config.exploration

        def uct(i: int) -> float:
            v = node.visits[i]
            return node.rewards[i] / v + c * math.sqrt(log_total / v)

        return max(range(len(node.moves)), key=uct)

    def _run(
        self,
        root: SearchState,
        root_node: _Node,
        evaluator: Evaluator,
        count: int,
        rng: random.Random,
    ) -> None:
        for _ in range(count):
            self._playout(root.clone(), root_node, evaluator, rng)

    def _playout(
        self, state: SearchState, node: _Node, evaluator: Evaluator, rng: random.Random
    ) -> None:
        path: list[tuple[_Node, int]] = []
        while True:
            with self._lock:
                if not node.moves:
                    value = node.evaluation
                    break
                idx = self._select(node, rng)
                child = node.children[idx]
                path.append((node, idx))
                # Count the visit now so concurrent playouts spread out.
                node.visits[idx] += 1
                node.total_visits += 1
            state.make_move(node.moves[idx])
            if child is None:
                child = self._node_for(state, evaluator)
                with self._lock:
                    node.children[idx] = child
                value = child.evaluation
                break
            node = child

        with self._lock:
            for parent, idx in path:
                parent.rewards[idx] += evaluator.interpret_evaluation_for_player(value, parent.player)
