import pytest

from scheduler import ImprovedPolicy, NaivePolicy
from simulation import ConfigError, Direction, ElevatorState, Simulation, SimulationConfig, TrafficEvent


@pytest.mark.parametrize("field", ["floors", "elevators", "max_capacity"])
def test_construction_rejects_non_positive_sizes(make_config, field):
    with pytest.raises(ConfigError):
        Simulation(make_config(**{field: 0}), NaivePolicy(), "Naive")


def test_initial_world(make_config):
    config = make_config(elevators=2, initial_people={0: 5, 3: 2, 42: 9}, floor_priorities={3: 10})
    simulation = Simulation(config, NaivePolicy(), "Naive")

    assert [f.current_population for f in simulation.floors][:4] == [5, 0, 0, 2]
    assert sum(f.current_population for f in simulation.floors) == 7
    assert simulation.floors[3].priority == 10
    assert simulation.floors[4].priority == 0
    for elevator in simulation.elevators:
        assert elevator.current_floor == 0
        assert elevator.state == ElevatorState.IDLE
        assert elevator.direction == Direction.IDLE
        assert elevator.passengers == []
        assert elevator.target_floors == []
        assert elevator.stats.total_delivered == 0
        assert elevator.stats.active_ticks == 0


def test_config_is_copied_at_construction(make_config):
    config = make_config(initial_people={0: 5})
    simulation = Simulation(config, NaivePolicy(), "Naive")
    config.initial_people[0] = 1
    config.floor_priorities[2] = 10

    assert simulation.config.initial_people == {0: 5}
    assert 2 not in simulation.config.floor_priorities


def test_set_floor_priority_ignores_unknown_floors(make_config):
    simulation = Simulation(make_config(floors=3), NaivePolicy(), "Naive")
    simulation.set_floor_priority(1, 7)
    simulation.set_floor_priority(5, 9)
    simulation.set_floor_priority(-1, 9)

    assert [f.priority for f in simulation.floors] == [0, 7, 0]
    assert simulation.config.floor_priorities == {1: 7}


def test_inject_events_spawns_into_waiting_queue(make_config):
    simulation = Simulation(make_config(initial_people={2: 4}), NaivePolicy(), "Naive")
    simulation.run(3)
    spawned = simulation.inject_events([TrafficEvent(source=2, destination=7, count=3)])

    floor = simulation.floors[2]
    assert spawned == 3
    assert floor.current_population == 1
    assert [p.spawn_time for p in floor.waiting_queue] == [3, 3, 3]
    assert all(p.dest_floor == 7 and p.source_floor == 2 for p in floor.waiting_queue)


def test_event_larger_than_population_is_dropped_whole(make_config):
    simulation = Simulation(make_config(initial_people={0: 2, 4: 3}), NaivePolicy(), "Naive")
    dropped = []
    simulation.on_event("dropped", dropped.append)

    spawned = simulation.inject_events(
        [
            TrafficEvent(source=0, destination=5, count=3),
            TrafficEvent(source=4, destination=1, count=2),
        ]
    )

    assert spawned == 2
    assert simulation.floors[0].current_population == 2
    assert len(simulation.floors[0].waiting_queue) == 0
    assert simulation.floors[4].current_population == 1
    assert len(simulation.floors[4].waiting_queue) == 2
    assert [d["event"].source for d in dropped] == [0]


def test_malformed_events_do_not_abort_the_batch(make_config):
    simulation = Simulation(make_config(initial_people={1: 2}), NaivePolicy(), "Naive")
    spawned = simulation.inject_events(
        [
            TrafficEvent(source=99, destination=1, count=1),
            TrafficEvent(source=1, destination=3, count=-1),
            TrafficEvent(source=1, destination=3, count=1),
        ]
    )
    assert spawned == 1
    assert len(simulation.floors[1].waiting_queue) == 1


@pytest.mark.parametrize("policy", [NaivePolicy(), ImprovedPolicy()], ids=["naive", "improved"])
def test_lobby_batch_to_top_floor(make_config, policy):
    simulation = Simulation(make_config(initial_people={0: 5}), policy, "Run")
    simulation.inject_events([TrafficEvent(source=0, destination=9, count=5)])

    # One rider boards per tick (ticks 1-5), doors close on tick 6 while the
    # car leaves, it reaches floor 9 on tick 14 and unloads on tick 15.
    simulation.run(14)
    assert simulation.get_world_state().stats.total_delivered == 0
    assert simulation.elevators[0].current_floor == 9

    simulation.step()
    stats = simulation.get_world_state().stats
    assert stats.total_delivered == 5
    assert stats.avg_transit_time == 15
    assert stats.avg_waiting_time == 3
    assert stats.elevator_utilization == pytest.approx(14 / 15)
    assert simulation.floors[9].current_population == 5
    assert simulation.elevators[0].stats.total_delivered == 5
    assert simulation.elevators[0].state == ElevatorState.IDLE


def test_boarding_freezes_movement_and_one_rider_per_tick(make_config):
    simulation = Simulation(make_config(initial_people={0: 3}), NaivePolicy(), "Naive")
    simulation.inject_events([TrafficEvent(source=0, destination=4, count=3)])

    for expected_load in (1, 2, 3):
        simulation.step()
        elevator = simulation.elevators[0]
        assert elevator.state == ElevatorState.BOARDING
        assert elevator.current_floor == 0
        assert len(elevator.passengers) == expected_load

    simulation.step()
    assert simulation.elevators[0].state == ElevatorState.MOVING
    assert simulation.elevators[0].current_floor == 1
    assert simulation.elevators[0].direction == Direction.UP


def test_fifo_boarding(make_config):
    simulation = Simulation(make_config(max_capacity=1, initial_people={2: 2}), NaivePolicy(), "Naive")
    simulation.inject_events([TrafficEvent(source=2, destination=5, count=1)])
    simulation.step()
    simulation.inject_events([TrafficEvent(source=2, destination=7, count=1)])
    simulation.run(2)

    rider = simulation.elevators[0].passengers[0]
    assert rider.spawn_time == 0
    assert rider.dest_floor == 5
    assert [p.spawn_time for p in simulation.floors[2].waiting_queue] == [1]


def test_capacity_limits_boarding(make_config):
    simulation = Simulation(make_config(max_capacity=2, initial_people={0: 4}), NaivePolicy(), "Naive")
    simulation.inject_events([TrafficEvent(source=0, destination=3, count=4)])
    simulation.run(4)

    assert len(simulation.elevators[0].passengers) == 2
    assert len(simulation.floors[0].waiting_queue) == 2


def test_world_state_is_a_copy(make_config):
    simulation = Simulation(make_config(initial_people={0: 2}), NaivePolicy(), "Naive")
    simulation.inject_events([TrafficEvent(source=0, destination=3, count=2)])
    simulation.step()

    state = simulation.get_world_state()
    state.elevators[0].target_floors.append(8)
    state.elevators[0].passengers.clear()
    state.floors[0].waiting_queue.clear()

    assert simulation.elevators[0].target_floors == [3]
    assert len(simulation.elevators[0].passengers) == 1
    assert len(simulation.floors[0].waiting_queue) == 1


def test_world_state_serializes(make_config):
    simulation = Simulation(make_config(initial_people={0: 1}), NaivePolicy(), "Naive")
    simulation.inject_events([TrafficEvent(source=0, destination=2, count=1)])
    simulation.step()

    data = simulation.get_world_state().to_dict()
    assert data["stats"]["algorithmName"] == "Naive"
    assert data["elevators"][0]["state"] == "BOARDING"
    assert data["elevators"][0]["targetFloors"] == [2]
    assert data["elevators"][0]["passengers"][0]["destFloor"] == 2
    assert data["floors"][0]["currentPopulation"] == 0


def test_empty_world_statistics(make_config):
    stats = Simulation(make_config(elevators=3), ImprovedPolicy(), "Improved").get_world_state().stats
    assert stats.algorithm_name == "Improved"
    assert stats.total_delivered == 0
    assert stats.avg_waiting_time == 0
    assert stats.avg_transit_time == 0
    assert stats.elevator_utilization == 0


def test_event_hooks_report_arrivals_and_deliveries(make_config):
    simulation = Simulation(make_config(initial_people={0: 1}), NaivePolicy(), "Naive")
    arrivals, deliveries = [], []
    simulation.on_event("arrival", arrivals.append)
    simulation.on_event("delivery", deliveries.append)

    simulation.inject_events([TrafficEvent(source=0, destination=1, count=1)])
    simulation.run(4)

    assert arrivals == [{"time": 0, "floor": 0, "count": 1}]
    assert deliveries == [{"time": 3, "elevator_id": 0, "floor": 1, "count": 1}]


def test_is_idle_and_population_map(make_config):
    simulation = Simulation(make_config(initial_people={0: 1}), NaivePolicy(), "Naive")
    assert simulation.is_idle()
    simulation.inject_events([TrafficEvent(source=0, destination=1, count=1)])
    assert not simulation.is_idle()
    simulation.run(5)
    assert simulation.is_idle()
    assert simulation.population_map() == {1: 1}


def test_config_validation_is_not_bypassed_by_direct_construction():
    config = SimulationConfig(floors=-2, elevators=1, max_capacity=1)
    with pytest.raises(ConfigError):
        Simulation(config, ImprovedPolicy(), "Improved")


def test_event_bound_outside_the_building_is_dropped(make_config):
    simulation = Simulation(make_config(floors=5, initial_people={0: 3}), ImprovedPolicy(), "Improved")
    dropped = []
    simulation.on_event("dropped", dropped.append)

    spawned = simulation.inject_events(
        [
            TrafficEvent(source=0, destination=9, count=1),
            TrafficEvent(source=0, destination=-1, count=1),
            TrafficEvent(source=0, destination=4, count=1),
        ]
    )
    simulation.run(20)

    assert spawned == 1
    assert [d["event"].destination for d in dropped] == [9, -1]
    assert simulation.floors[0].current_population == 2
    assert simulation.floors[4].current_population == 1
    assert all(0 <= e.current_floor < 5 for e in simulation.elevators)
