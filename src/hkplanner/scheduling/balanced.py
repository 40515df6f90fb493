"""OR-Tools CP-SAT distributor for load-balanced room assignment.

This module provides an optional alternative to the greedy distributor. It
solves the same room-to-staff problem as a constraint program: each room goes
to exactly one staff member, capacity is soft (overflow is heavily
penalized), skill-override matches are rewarded and the busiest staff
member's load is minimized.
"""

from dataclasses import dataclass
from typing import Optional

from ortools.sat.python import cp_model

from hkplanner.config import DistributorType, EngineConfig
from hkplanner.domain.models import Room, StaffMember
from hkplanner.exceptions import SolverError
from hkplanner.scheduling.distributor import (
    DEFAULT_SKILL_OVERRIDES,
    AssignmentDistributor,
    AssignmentOutcome,
    RoomAssignment,
    SkillOverride,
    Workload,
)
from hkplanner.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass
class BalancedWeights:
    """Objective weights for the CP-SAT distributor.

    Attributes:
        overflow_penalty: Cost per room assigned beyond a staff member's capacity.
        skill_reward: Reward per special room given to a matching specialist.
        max_load_penalty: Cost per room on the busiest staff member.
    """

    overflow_penalty: int = 1000
    skill_reward: int = 20
    max_load_penalty: int = 10


@dataclass
class BalancedResult:
    """Result from the CP-SAT distributor.

    Attributes:
        assignments: Room assignments in input order (empty if infeasible).
        status: Solver status (OPTIMAL, FEASIBLE, etc.).
        objective_value: Final objective value.
        solve_time_seconds: Time taken to solve.
    """

    assignments: list[RoomAssignment]
    status: str
    objective_value: int = 0
    solve_time_seconds: float = 0.0

    @property
    def is_feasible(self) -> bool:
        return self.status in ("OPTIMAL", "FEASIBLE")


class BalancedDistributor:
    """Constraint Programming distributor using OR-Tools CP-SAT.

    Args:
        time_limit_seconds: Maximum solver runtime per call.
        skill_overrides: Room-type to skill preferences (defaults to the
            greedy distributor's overrides).
        weights: Objective weights.
        fallback: Distributor used when the solver finds no solution. If
            None, SolverError is raised instead.
    """

    def __init__(
        self,
        time_limit_seconds: float = 10.0,
        skill_overrides: Optional[tuple[SkillOverride, ...]] = None,
        weights: Optional[BalancedWeights] = None,
        fallback: Optional[AssignmentDistributor] = None,
    ):
        self.time_limit_seconds = time_limit_seconds
        self.skill_overrides = (
            DEFAULT_SKILL_OVERRIDES if skill_overrides is None else tuple(skill_overrides)
        )
        self.weights = weights or BalancedWeights()
        self.fallback = fallback

    def distribute(
        self,
        rooms: list[Room],
        staff: list[StaffMember],
        workload: Optional[Workload] = None,
    ) -> list[RoomAssignment]:
        """Assign each room to a staff member; same contract as the greedy distributor."""
        if workload is None:
            workload = Workload()

        if not staff:
            return [
                RoomAssignment(room, None, 0, AssignmentOutcome.UNASSIGNED)
                for room in rooms
            ]
        if not rooms:
            return []

        result = self.solve(rooms, staff, workload)
        if result.is_feasible:
            return result.assignments

        if self.fallback is None:
            raise SolverError(
                f"CP-SAT found no assignment for {len(rooms)} rooms (status {result.status})"
            )

        logger.warning(
            "CP-SAT returned %s for %d rooms; falling back to greedy distribution",
            result.status,
            len(rooms),
        )
        return self.fallback.distribute(rooms, staff, workload)

    def solve(
        self,
        rooms: list[Room],
        staff: list[StaffMember],
        workload: Workload,
    ) -> BalancedResult:
        """Solve the assignment problem; ``workload`` is only updated on success."""
        model = cp_model.CpModel()
        n_rooms = len(rooms)

        # Decision variables: x[r][s] = 1 if room r goes to staff member s
        x: dict[int, dict[int, cp_model.IntVar]] = {}
        for r in range(n_rooms):
            x[r] = {}
            for s in range(len(staff)):
                x[r][s] = model.NewBoolVar(f"x_{r}_{s}")

        # Constraint: each room to exactly one staff member
        for r in range(n_rooms):
            model.AddExactlyOne(x[r].values())

        upper = n_rooms + max(workload.get(m) for m in staff)
        max_load = model.NewIntVar(0, upper, "max_load")
        objective_terms = []

        for s, member in enumerate(staff):
            load = model.NewIntVar(0, upper, f"load_{s}")
            # Rooms already on the member's day add no load
            new_rooms = [x[r][s] for r in range(n_rooms) if not workload.holds(member, rooms[r])]
            model.Add(load == workload.get(member) + sum(new_rooms))
            model.Add(max_load >= load)

            # Soft capacity: overflow >= load - capacity
            overflow = model.NewIntVar(0, upper, f"overflow_{s}")
            model.Add(overflow >= load - member.max_rooms_per_day)
            objective_terms.append(overflow * self.weights.overflow_penalty)

        # Reward special rooms going to matching specialists
        for r, room in enumerate(rooms):
            override = next((o for o in self.skill_overrides if o.applies_to(room)), None)
            if override is None:
                continue
            for s, member in enumerate(staff):
                if member.has_any_skill(override.skills):
                    objective_terms.append(-self.weights.skill_reward * x[r][s])

        objective_terms.append(max_load * self.weights.max_load_penalty)
        model.Minimize(sum(objective_terms))

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.time_limit_seconds
        status = solver.Solve(model)

        status_map = {
            cp_model.OPTIMAL: "OPTIMAL",
            cp_model.FEASIBLE: "FEASIBLE",
            cp_model.INFEASIBLE: "INFEASIBLE",
            cp_model.MODEL_INVALID: "MODEL_INVALID",
            cp_model.UNKNOWN: "UNKNOWN",
        }
        status_str = status_map.get(status, "UNKNOWN")

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            return BalancedResult(
                assignments=[],
                status=status_str,
                solve_time_seconds=solver.WallTime(),
            )

        assignments = self._extract_solution(solver, x, rooms, staff, workload)
        return BalancedResult(
            assignments=assignments,
            status=status_str,
            objective_value=int(solver.ObjectiveValue()),
            solve_time_seconds=solver.WallTime(),
        )

    def _extract_solution(
        self,
        solver: cp_model.CpSolver,
        x: dict[int, dict[int, cp_model.IntVar]],
        rooms: list[Room],
        staff: list[StaffMember],
        workload: Workload,
    ) -> list[RoomAssignment]:
        """Read the chosen staff member per room, in room order."""
        assignments = []
        for r, room in enumerate(rooms):
            s = next(s for s in x[r] if solver.Value(x[r][s]) == 1)
            member = staff[s]
            outcome = AssignmentOutcome.ASSIGNED
            if not workload.has_capacity(member, room):
                outcome = AssignmentOutcome.ASSIGNED_OVER_CAPACITY
                logger.warning(
                    "Room %s assigned to %s over capacity (%d/%d)",
                    room.number,
                    member.name,
                    workload.get(member) + 1,
                    member.max_rooms_per_day,
                )
            ordinal = workload.assign(member, room)
            assignments.append(RoomAssignment(room, member, ordinal, outcome))
        return assignments


def build_distributor(config: Optional[EngineConfig] = None):
    """Build the distributor selected by the configuration.

    Returns:
        An object exposing ``distribute(rooms, staff, workload)``.
    """
    config = config or EngineConfig()
    greedy = AssignmentDistributor()

    if config.distributor == DistributorType.BALANCED:
        return BalancedDistributor(time_limit_seconds=config.solver_time_limit_seconds)
    if config.distributor == DistributorType.HYBRID:
        return BalancedDistributor(
            time_limit_seconds=config.solver_time_limit_seconds,
            fallback=greedy,
        )
    return greedy
