"""Static workstation catalogue: six service stations and their task checklists."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Task:
    """A single checklist item at a workstation."""

    id: str
    description: str


@dataclass(frozen=True)
class WorkstationConfig:
    """A service workstation and its ordered task list."""

    station_number: int
    station_name: str
    tasks: tuple[Task, ...]

    @property
    def task_count(self) -> int:
        return len(self.tasks)

    @property
    def task_ids(self) -> list[str]:
        return [t.id for t in self.tasks]


def _tasks(station: int, descriptions: list[str]) -> tuple[Task, ...]:
    return tuple(
        Task(id=f"ws{station}_task{i}", description=desc)
        for i, desc in enumerate(descriptions, start=1)
    )


WORKSTATIONS: tuple[WorkstationConfig, ...] = (
    WorkstationConfig(
        station_number=1,
        station_name="Initial Inspection",
        tasks=_tasks(1, [
            "Check task light",
            "Check plug top",
            "Check wire sleeving",
            "Check switch",
            "Check ACCU 10 & Other feeder",
            "Check bobbin winder condition",
            "Check all function & standard",
            "Check air leakage & Pneumatic",
            "Check control box & electronics",
            "Check painting condition",
            "Check oil condition",
        ]),
    ),
    WorkstationConfig(
        station_number=2,
        station_name="External Parts Service",
        tasks=_tasks(2, [
            "Change caster wheel",
            "Clean caster wheel",
            "Remove thread stand",
            "Adjust stand height",
            "Change machine stand",
            "Paddle change",
        ]),
    ),
    WorkstationConfig(
        station_number=3,
        station_name="Disassembly",
        tasks=_tasks(3, [
            "Remove synchronizer",
            "Remove wires",
            "Remove air tube",
            "Remove dust hose",
            "Remove machine head",
            "Remove covers",
            "Remove attachment & parts",
            "Change oil filter",
            "Clean oil filter",
            "Remove silicon cup",
            "Remove belt cover",
            "Remove hand wheel",
        ]),
    ),
    WorkstationConfig(
        station_number=4,
        station_name="Cleaning",
        tasks=_tasks(4, [
            "Clean machine head inside",
            "Remove oil",
            "Clean thread cam",
            "Clean tension post",
            "Clean thread take-up",
            "Clean thread eyelet",
            "Clean wires",
            "Clean motor cover & control box",
            "Clean silicon cup",
            "Clean table top",
            "Clean machine head outside",
            "Touch up damaged paint areas",
        ]),
    ),
    WorkstationConfig(
        station_number=5,
        station_name="Reassembly",
        tasks=_tasks(5, [
            "Fix thread take-up",
            "Fix tension post",
            "Fix hand wheel",
            "Fix synchronizer",
            "Fix belt cover",
            "Fix thread stand",
            "Fix needle plate",
            "Fix covers",
            "Fix oil or condition",
            "Fix eye guard",
            "Fix finger guard",
            "Fix thread eyelet",
            "Fix pressure foot",
        ]),
    ),
    WorkstationConfig(
        station_number=6,
        station_name="Final Inspection",
        tasks=_tasks(6, [
            "Make or correct wire condition",
            "Make or correct pneumatic condition",
            "Replace dust bag",
            "Attach main wire clip",
            "Recheck all function & standards",
            "Paste service sticker",
            "Paste safety sticker",
        ]),
    ),
)

FIRST_WORKSTATION = WORKSTATIONS[0].station_number
FINAL_WORKSTATION = WORKSTATIONS[-1].station_number
WORKSTATION_COUNT = len(WORKSTATIONS)

_BY_NUMBER = {ws.station_number: ws for ws in WORKSTATIONS}


def get_workstation(station_number: int) -> WorkstationConfig | None:
    """Look up a workstation by number; None if it is not configured."""
    return _BY_NUMBER.get(station_number)


def is_valid_workstation(station_number: int) -> bool:
    return station_number in _BY_NUMBER
