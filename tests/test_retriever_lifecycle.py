import pytest

from retriever.runtime.lifecycle import deliver, initialize, run, setup_return_zone
from retriever.runtime.telemetry import DebugConfig
from retriever.runtime.tick import begin_tick, run_retrievers_for_tick
from retriever.state import RetrievalContext
from retriever.world.sandbox import SandboxWorld
from retriever.world.workers import WorkerPhase, WorkerRecord
from retriever.world.zones import FacilityKind


def _seed_world() -> tuple[SandboxWorld, RetrievalContext]:
    world = SandboxWorld()
    world.add_marker("flag-w1", "W1")
    world.add_facility("H1", FacilityKind.STORAGE, 0)
    world.add_facility("H1", FacilityKind.SPAWN, 0)
    world.add_facility("W1", FacilityKind.CONTAINER, 1_000)
    world.link("W1", "H1", 2)
    ctx = RetrievalContext.from_world(world)
    begin_tick(ctx, 1)
    return world, ctx


def _worker(name: str = "r-1", **kwargs) -> WorkerRecord:
    kwargs.setdefault("birth_zone", "H1")
    kwargs.setdefault("ticks_to_live", 1500)
    kwargs.setdefault("carry_capacity", 100)
    return WorkerRecord(name=name, **kwargs)


def test_worker_requires_birth_zone() -> None:
    with pytest.raises(ValueError):
        WorkerRecord(name="orphan", birth_zone="")


def test_initialize_assigns_flagged_zone_once() -> None:
    _, ctx = _seed_world()
    worker = _worker()
    ctx.roster.add(worker)

    initialize(ctx, worker)
    assert worker.target_zone == "W1"
    assert worker.return_zone == "H1"
    assert worker.needs_return_zone is True
    assert worker.multi_zone is True
    assert worker.initialized is True
    assert worker.phase is WorkerPhase.ASSIGNED

    worker.target_zone = "elsewhere"
    initialize(ctx, worker)
    assert worker.target_zone == "elsewhere"


def test_initialize_falls_back_to_birth_zone_with_warning() -> None:
    ctx = RetrievalContext.from_world(SandboxWorld())
    begin_tick(ctx, 1)
    worker = _worker()

    initialize(ctx, worker)
    assert worker.target_zone == "H1"
    assert ctx.metrics.get("retriever.assign.fallback_birth_zone") == 1
    warnings = ctx.event_ring.of_kind("RETRIEVER_UNASSIGNED")
    assert warnings and warnings[0]["level"] == "WARNING"


def test_arrival_in_target_zone_resolves_return_zone() -> None:
    world, ctx = _seed_world()
    world.link("W1", "H9", 1)
    world.add_facility("H9", FacilityKind.STORAGE, 0)
    worker = _worker(current_zone="W1")
    worker.target_zone = "W1"
    worker.initialized = True
    worker.needs_return_zone = True

    run(ctx, worker)
    assert worker.return_zone == "H9"
    assert worker.needs_return_zone is False


def test_return_zone_falls_back_to_spawn_zone() -> None:
    world = SandboxWorld()
    world.add_facility("S1", FacilityKind.SPAWN, 0)
    world.link("W1", "S1", 3)
    ctx = RetrievalContext.from_world(world)
    worker = _worker(current_zone="W1")

    assert setup_return_zone(ctx, worker) is True
    assert worker.return_zone == "S1"


def test_unresolvable_return_zone_stays_pending_and_retries() -> None:
    world = SandboxWorld()
    world.add_marker("flag-w1", "W1")
    ctx = RetrievalContext.from_world(world)
    worker = _worker(current_zone="W1")

    for tick in (1, 2, 3):
        begin_tick(ctx, tick)
        run(ctx, worker)

    assert worker.needs_return_zone is True
    assert worker.phase is WorkerPhase.RETURN_PENDING
    assert ctx.metrics.get("retriever.return_zone.unresolved") == 3
    assert ctx.metrics.get("retriever.run.errors") == 0


def test_full_cycle_collects_and_deposits_into_storage() -> None:
    world, ctx = _seed_world()
    worker = _worker()
    ctx.roster.add(worker)

    phases = []
    # out, collect, haul back, deposit
    for tick in range(1, 5):
        run_retrievers_for_tick(ctx, tick)
        phases.append(worker.phase)

    assert phases[0] is WorkerPhase.EN_ROUTE_OUT
    assert WorkerPhase.AT_SOURCE in phases
    assert WorkerPhase.EN_ROUTE_BACK in phases
    assert WorkerPhase.AT_RETURN in phases
    assert world.facilities["H1"][FacilityKind.STORAGE] == 100
    assert worker.carry == 0
    assert worker.needs_return_zone is False and worker.return_zone == "H1"


def test_collection_tries_reload_before_direct_load() -> None:
    world, ctx = _seed_world()
    world.facilities["W1"] = {FacilityKind.TERMINAL: 40}
    worker = _worker(current_zone="W1")
    run(ctx, worker)
    assert (worker.name, "reload", "terminal") in world.actions
    assert worker.carry == 40


def test_delivery_prefers_storage_then_container_then_structures() -> None:
    world, ctx = _seed_world()
    world.facilities["H1"] = {FacilityKind.CONTAINER: 0, FacilityKind.EXTENSION: 0}
    worker = _worker(current_zone="H1", carry=30, delivering=True)
    worker.return_zone = "H1"

    assert deliver(ctx, worker) is True
    assert world.facilities["H1"][FacilityKind.CONTAINER] == 30

    world.facilities["H1"] = {FacilityKind.TOWER: 0}
    worker.carry = 30
    assert deliver(ctx, worker) is True
    assert (worker.name, "supply", "tower") in world.actions


def test_delivery_without_target_is_idle() -> None:
    world, ctx = _seed_world()
    world.facilities["H1"] = {}
    worker = _worker(current_zone="H1", carry=30, delivering=True)
    worker.return_zone = "H1"
    assert deliver(ctx, worker) is False
    assert worker.carry == 30
    assert worker.phase is WorkerPhase.AT_RETURN


def test_missing_return_zone_self_heals_during_delivery() -> None:
    world, ctx = _seed_world()
    ctx.debug_cfg = DebugConfig(level="verbose")
    worker = _worker(current_zone="W1", carry=100, delivering=True)
    worker.target_zone = "W1"
    worker.initialized = True
    worker.return_zone = None

    deliver(ctx, worker)
    assert worker.return_zone == "H1"
    assert worker.needs_return_zone is False
    assert ctx.event_ring.of_kind("RETURN_ZONE_MISSING")[0]["level"] == "ERROR"
    assert ctx.event_ring.of_kind("RETURN_ZONE_RECOVERED")
    assert worker.phase is WorkerPhase.EN_ROUTE_BACK


def test_retreat_preempts_delivery_movement() -> None:
    world, ctx = _seed_world()
    world.hostile_zones.add("W1")
    worker = _worker(current_zone="X5", carry=100, delivering=True)
    worker.target_zone = "W1"
    worker.return_zone = "H1"
    worker.needs_return_zone = False
    worker.initialized = True
    worker.phase = WorkerPhase.EN_ROUTE_BACK

    run(ctx, worker)
    assert worker.retreating is True
    own_actions = [action for action in world.actions if action[0] == worker.name]
    assert own_actions[0] == (worker.name, "retreat", "W1")
    assert ctx.metrics.get("retriever.retreats") == 1

    world.hostile_zones.clear()
    run(ctx, worker)
    assert worker.retreating is False


def test_spawning_workers_are_skipped() -> None:
    _, ctx = _seed_world()
    worker = _worker(spawning=True)
    run(ctx, worker)
    assert worker.initialized is False
    assert ctx.roster.get(worker.name) is None


def test_collaborator_failure_is_recorded_not_raised() -> None:
    _, ctx = _seed_world()

    class _BrokenMover:
        def move_toward_zone(self, worker, zone_id):
            raise RuntimeError("path service down")

    ctx.mover = _BrokenMover()
    worker = _worker()

    run(ctx, worker)
    assert ctx.metrics.get("retriever.run.errors") == 1
    failure = ctx.event_ring.of_kind("RETRIEVER_STEP_FAILED")[0]
    assert failure["level"] == "ERROR"
    assert "path service down" in failure["error"]


def test_second_worker_takes_handover_when_zone_is_staffed() -> None:
    _, ctx = _seed_world()
    first = _worker("r-1", ticks_to_live=20)
    second = _worker("r-2", ticks_to_live=1500)
    ctx.roster.add(first)
    run(ctx, first)
    ctx.roster.add(second)
    run(ctx, second)

    assert first.target_zone == "W1" and second.target_zone == "W1"
    assert first.replaced is True
    assert ctx.roster.assigned_to("W1") == [second]
    assert ctx.metrics.get("retriever.assign.replacements") == 1


def test_needs_return_zone_cleared_implies_return_zone_set() -> None:
    world, ctx = _seed_world()
    workers = [_worker(f"r-{i}") for i in range(3)]
    for worker in workers:
        ctx.roster.add(worker)

    for tick in range(1, 12):
        run_retrievers_for_tick(ctx, tick)
        for worker in workers:
            if worker.initialized and not worker.needs_return_zone:
                assert worker.return_zone is not None


def test_tick_driver_is_deterministic() -> None:
    def _simulate() -> list[str]:
        world, ctx = _seed_world()
        world.add_marker("flag-w2", "W2")
        world.add_facility("W2", FacilityKind.STORAGE, 500)
        world.link("W2", "H1", 4)
        for i in range(4):
            ctx.roster.add(_worker(f"r-{i}", ticks_to_live=100 + i))
        summaries = [run_retrievers_for_tick(ctx, tick) for tick in range(1, 10)]
        return [f"{s['signature']}#{s['metrics']}" for s in summaries]

    assert _simulate() == _simulate()


def test_tick_summary_reports_desired_and_workers() -> None:
    _, ctx = _seed_world()
    ctx.roster.add(_worker("r-1"))
    ctx.roster.add(_worker("r-dead", ticks_to_live=0))
    summary = run_retrievers_for_tick(ctx, 2)
    assert summary["workers"] == 1
    assert summary["desired"] == 1
    assert summary["errors"] == 0
    assert "retriever.assign.ok" in summary["metrics"]


def test_roster_rejects_duplicates_and_forgets_expired_workers() -> None:
    _, ctx = _seed_world()
    worker = ctx.roster.add(_worker("r-1"))
    with pytest.raises(ValueError):
        ctx.roster.add(_worker("r-1"))

    run(ctx, worker)
    assert ctx.roster.assigned_to("W1") == [worker]

    ctx.roster.remove("r-1")
    assert len(ctx.roster) == 0
    assert ctx.roster.assigned_to("W1") == []


def test_worker_repeats_collect_and_deliver_trips() -> None:
    world, ctx = _seed_world()
    worker = _worker()
    ctx.roster.add(worker)

    phases = []
    stored = []
    for tick in range(1, 9):
        run_retrievers_for_tick(ctx, tick)
        phases.append(worker.phase)
        stored.append(world.facilities["H1"][FacilityKind.STORAGE])

    trip = [
        WorkerPhase.EN_ROUTE_OUT,
        WorkerPhase.AT_SOURCE,
        WorkerPhase.EN_ROUTE_BACK,
        WorkerPhase.AT_RETURN,
    ]
    assert phases == trip + trip
    assert stored[3] == 100
    assert stored[7] == 200
    assert world.facilities["W1"][FacilityKind.CONTAINER] == 800
