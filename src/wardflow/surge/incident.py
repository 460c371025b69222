"""Mass-casualty incident configuration and casualty profiles.

A surge incident injects a batch of casualties over a short window. It is
used two ways:
- ``build_scenario()`` gives the deterministic scenario used when the
  advisory service cannot generate one
- ``generate_arrivals()`` feeds the surge drill with arrival times and
  acuities

Arrival times and acuities are pre-calculated from a seeded generator, so
the same seed gives the same incident.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import numpy as np

from wardflow.advisory.interface import SurgeScenario
from wardflow.core.entities import AcuityLevel
from wardflow.core.models import Patient

if TYPE_CHECKING:
    from wardflow.advisory.dispatcher import AdvisoryDispatcher


class ArrivalPattern(Enum):
    """Temporal distribution of casualty arrivals.

    BOLUS: Front-loaded surge. Rapid transport from a single scene.

    WAVES: Multiple peaks at regular intervals. Phased evacuation.

    SUSTAINED: Uniform rate throughout the window.
    """
    BOLUS = "bolus"
    WAVES = "waves"
    SUSTAINED = "sustained"


class CasualtyProfile(Enum):
    """Casualty mix by incident type."""
    GENERIC = "generic"    # Standard MCI, balanced distribution
    BLAST = "blast"        # Explosion, high Critical share
    RTA = "rta"            # Road traffic collision, blunt trauma
    BURNS = "burns"        # Fire or industrial, high High share
    COMBAT = "combat"      # Penetrating trauma


CASUALTY_PROFILES: Dict[CasualtyProfile, Dict] = {
    CasualtyProfile.GENERIC: {
        "acuity_mix": {
            AcuityLevel.CRITICAL: 0.20,
            AcuityLevel.HIGH: 0.35,
            AcuityLevel.MEDIUM: 0.35,
            AcuityLevel.LOW: 0.10,
        },
        "title": "Structural Collapse",
        "conditions": ["Crush injury", "Head trauma", "Fractured femur", "Lacerations"],
    },
    CasualtyProfile.BLAST: {
        "acuity_mix": {
            AcuityLevel.CRITICAL: 0.30,
            AcuityLevel.HIGH: 0.40,
            AcuityLevel.MEDIUM: 0.25,
            AcuityLevel.LOW: 0.05,
        },
        "title": "Industrial Explosion",
        "conditions": ["Blast lung", "Fragmentation wounds", "Tympanic rupture", "Burns"],
    },
    CasualtyProfile.RTA: {
        "acuity_mix": {
            AcuityLevel.CRITICAL: 0.15,
            AcuityLevel.HIGH: 0.45,
            AcuityLevel.MEDIUM: 0.30,
            AcuityLevel.LOW: 0.10,
        },
        "title": "Highway Pileup",
        "conditions": ["Chest trauma", "Pelvic fracture", "Whiplash", "Splenic rupture"],
    },
    CasualtyProfile.BURNS: {
        "acuity_mix": {
            AcuityLevel.CRITICAL: 0.20,
            AcuityLevel.HIGH: 0.50,
            AcuityLevel.MEDIUM: 0.25,
            AcuityLevel.LOW: 0.05,
        },
        "title": "Warehouse Fire",
        "conditions": ["Full thickness burns", "Smoke inhalation", "Partial burns", "Airway burns"],
    },
    CasualtyProfile.COMBAT: {
        "acuity_mix": {
            AcuityLevel.CRITICAL: 0.35,
            AcuityLevel.HIGH: 0.40,
            AcuityLevel.MEDIUM: 0.20,
            AcuityLevel.LOW: 0.05,
        },
        "title": "Mass Stabbing",
        "conditions": ["Penetrating abdominal wound", "Haemorrhage", "Stab wound to limb", "Pneumothorax"],
    },
}


@dataclass
class SurgeIncident:
    """Configuration for a mass-casualty surge.

    Attributes:
        casualty_count: Number of casualties to inject.
        duration: Arrival window in minutes.
        arrival_pattern: Temporal distribution within the window.
        casualty_profile: Incident type determining the acuity mix.
        wave_count: Number of peaks for WAVES (ignored otherwise).
        title: Scenario headline. Defaults to the profile's title.
        description: Scenario description for the operator alert.
    """
    casualty_count: int = 5
    duration: float = 60.0
    arrival_pattern: ArrivalPattern = ArrivalPattern.BOLUS
    casualty_profile: CasualtyProfile = CasualtyProfile.GENERIC
    wave_count: int = 3
    title: Optional[str] = None
    description: str = ""

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.casualty_count < 1:
            raise ValueError("casualty_count must be at least 1")
        if self.duration <= 0:
            raise ValueError("duration must be positive")
        if self.wave_count < 1:
            raise ValueError("wave_count must be at least 1")

    @property
    def scenario_title(self) -> str:
        return self.title or CASUALTY_PROFILES[self.casualty_profile]["title"]

    def generate_arrival_times(self, rng: np.random.Generator) -> List[float]:
        """Arrival times in minutes from incident start, sorted."""
        n = self.casualty_count
        if self.arrival_pattern == ArrivalPattern.BOLUS:
            # Beta(2, 5) gives strong front-loading
            times = (rng.beta(2.0, 5.0, size=n) * self.duration).tolist()
        elif self.arrival_pattern == ArrivalPattern.WAVES:
            times = self._wave_arrivals(rng, n)
        else:
            times = rng.uniform(0, self.duration, size=n).tolist()
        return sorted(float(t) for t in times)

    def _wave_arrivals(self, rng: np.random.Generator, n: int) -> List[float]:
        wave_interval = self.duration / self.wave_count
        wave_std = wave_interval * 0.2

        times = []
        per_wave, remainder = divmod(n, self.wave_count)
        for wave_idx in range(self.wave_count):
            center = wave_interval * (wave_idx + 0.5)
            n_this_wave = per_wave + (1 if wave_idx < remainder else 0)
            wave_times = np.clip(rng.normal(center, wave_std, size=n_this_wave), 0, self.duration)
            times.extend(wave_times.tolist())
        return times

    def sample_acuity(self, rng: np.random.Generator) -> AcuityLevel:
        """Sample an acuity level from the profile's mix."""
        mix = CASUALTY_PROFILES[self.casualty_profile]["acuity_mix"]
        levels = list(mix.keys())
        idx = rng.choice(len(levels), p=list(mix.values()))
        return levels[idx]

    def generate_arrivals(self, rng: np.random.Generator) -> List[Tuple[float, Patient]]:
        """Pre-generate (arrival time, casualty) pairs for the drill."""
        times = self.generate_arrival_times(rng)
        return list(zip(times, self._casualties(rng)))

    def _casualties(self, rng: np.random.Generator) -> List[Patient]:
        conditions = CASUALTY_PROFILES[self.casualty_profile]["conditions"]
        casualties = []
        for idx in range(self.casualty_count):
            acuity = self.sample_acuity(rng)
            condition = conditions[int(rng.integers(len(conditions)))]
            casualties.append(Patient(
                id=f"DRAFT-{idx}",
                name=f"Casualty {idx + 1}",
                acuity_score=acuity,
                condition=condition,
                detailed_condition=f"{condition} from {self.scenario_title.lower()}",
            ))
        return casualties

    def build_scenario(self, rng: np.random.Generator) -> SurgeScenario:
        """Deterministic scenario for a given generator state."""
        description = self.description or (
            f"{self.casualty_count} casualties expected over {self.duration:.0f} minutes."
        )
        return SurgeScenario(
            title=self.scenario_title,
            description=description,
            patients=tuple(self._casualties(rng)),
        )


def scenario_with_fallback(
    dispatcher: "AdvisoryDispatcher",
    incident: SurgeIncident,
    rng: np.random.Generator,
) -> SurgeScenario:
    """Scenario from the advisory service, or the incident's own one."""
    scenario = dispatcher.generate_surge_scenario()
    if scenario is None:
        return incident.build_scenario(rng)
    return scenario
