# utils/manager_performance/catalog.py
"""
Role/KPI catalog

Static reference data: role -> ordered pillar templates -> KPI definitions.
The role decides the SHAPE of a manager's pillar/KPI tree; build_pillars()
always returns fresh objects so managers never share mutable state.

Also provides the default manager roster used to seed the store.
"""

import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .constants import AggregationMode, ManagerRole, ScoringDirection
from .models import KPI, Manager, Pillar

logger = logging.getLogger(__name__)

_HIGHER = ScoringDirection.HIGHER_IS_BETTER
_LOWER = ScoringDirection.LOWER_IS_BETTER
_SUM = AggregationMode.SUM
_AVG = AggregationMode.AVERAGE

# =====================================================================
# MASTER KPI DEFINITIONS
# =====================================================================

KPI_DEFINITIONS: Dict[str, Dict] = {
    # --- Leadership / HR ---
    "employee_turnover": {
        "name": "Employee Turnover", "target": 0.8, "unit": "percentage",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Monthly share of employees who left the team.",
    },
    "training_completion": {
        "name": "Training Completion", "target": 98, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Share of mandatory training completed on time.",
    },
    "absenteeism_rate": {
        "name": "Absenteeism Rate", "target": 3, "unit": "percentage",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Unplanned absence days over scheduled work days.",
    },
    # --- Ramp operations ---
    "otp": {
        "name": "On-Time Performance", "target": 98, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG, "benchmark": 99,
        "description": "Departures not delayed by ground handling.",
    },
    "avg_turnaround_time": {
        "name": "Average Turnaround Time", "target": 40, "unit": "minutes",
        "direction": _LOWER, "aggregation": _AVG, "benchmark": 35,
        "description": "Time from on-block to ready for departure.",
    },
    "loading_accuracy": {
        "name": "Loading Accuracy", "target": 99.9, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Flights loaded without load-sheet discrepancies.",
    },
    "turnaround_plan_compliance": {
        "name": "Turnaround Plan Compliance", "target": 95, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Turnarounds executed according to the station plan.",
    },
    "accident_rate": {
        "name": "Accident Rate", "target": 1.0, "unit": "incidents",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Serious accidents per 10,000 flights.",
    },
    "fod_incidents": {
        "name": "FOD Incidents", "target": 0, "unit": "incidents",
        "direction": _LOWER, "aggregation": _SUM,
        "description": "Foreign object debris incidents on the apron.",
    },
    "ground_damage_rate": {
        "name": "Ground Damage Rate", "target": 0.3, "unit": "per_1000_mov",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Aircraft ground damage events per 1000 movements.",
    },
    "marshalling_incidents_rate": {
        "name": "Marshalling Incidents Rate", "target": 0.5, "unit": "per_1000_mov",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Marshalling errors per 1000 movements.",
    },
    "cost_per_turnaround": {
        "name": "Cost per Turnaround", "target": 4800, "unit": "currency",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Total operating cost divided by flights handled.",
    },
    "overtime_costs": {
        "name": "Overtime Costs", "target": 60000, "unit": "currency",
        "direction": _LOWER, "aggregation": _SUM,
        "description": "Overtime paid during the month.",
    },
    # --- Passenger services ---
    "passenger_satisfaction_csat": {
        "name": "Passenger Satisfaction (CSAT)", "target": 90, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Positive answers in passenger surveys.",
    },
    "checkin_queue_time": {
        "name": "Check-in Queue Time", "target": 5, "unit": "minutes",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Average wait in the check-in queue.",
    },
    "formal_complaints": {
        "name": "Formal Complaints", "target": 1.5, "unit": "per_1000_pax",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Formal passenger complaints per 1000 passengers.",
    },
    "prm_wait_time": {
        "name": "PRM Wait Time", "target": 15, "unit": "minutes",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Wait time for passengers with reduced mobility.",
    },
    "first_bag_delivery": {
        "name": "First Bag Delivery", "target": 15, "unit": "minutes",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "On-block to first bag on the belt.",
    },
    "last_bag_delivery": {
        "name": "Last Bag Delivery", "target": 30, "unit": "minutes",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "On-block to last bag on the belt.",
    },
    "boarding_gate_performance": {
        "name": "Gate Closure Compliance", "target": 98, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Flights whose boarding gate closed on time.",
    },
    "baggage_accuracy": {
        "name": "Mishandled Baggage Rate", "target": 2.0, "unit": "per_1000_pax",
        "direction": _LOWER, "aggregation": _AVG, "benchmark": 1.5,
        "description": "Lost or mishandled bags per 1000 passengers.",
    },
    "self_checkin_usage": {
        "name": "Self Check-in Usage", "target": 60, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Passengers using kiosks or online check-in.",
    },
    "sla_compliance": {
        "name": "SLA Compliance", "target": 99.5, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Service level agreement items met.",
    },
    # --- Technical services ---
    "gse_availability": {
        "name": "GSE Availability", "target": 97, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Ground support equipment ready for service.",
    },
    "mean_time_to_repair": {
        "name": "Mean Time to Repair", "target": 240, "unit": "minutes",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Average time to bring failed equipment back.",
    },
    "first_time_fix_rate": {
        "name": "First Time Fix Rate", "target": 90, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Repairs that did not need a second intervention.",
    },
    "preventive_maintenance_compliance": {
        "name": "Preventive Maintenance Compliance", "target": 95, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Scheduled maintenance done on time.",
    },
    "spare_parts_availability": {
        "name": "Spare Parts Availability", "target": 95, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Part requests served from stock.",
    },
    "equipment_downtime": {
        "name": "Equipment Downtime", "target": 2, "unit": "percentage",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Share of time equipment is out of service.",
    },
    "budget_adherence": {
        "name": "Budget Adherence", "target": 100, "unit": "percentage",
        "direction": _LOWER, "aggregation": _AVG,
        "description": "Actual spend over approved budget.",
    },
    # --- Safety & quality ---
    "audit_compliance": {
        "name": "Safety Audit Score", "target": 95, "unit": "score",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Result of internal and external (ISAGO) audits.",
    },
    "corrective_action_closure_rate": {
        "name": "Corrective Action Closure", "target": 95, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Audit findings closed within the agreed time.",
    },
    "proactive_safety_reports": {
        "name": "Proactive Safety Reports", "target": 20, "unit": "count",
        "direction": _HIGHER, "aggregation": _SUM,
        "description": "Hazard reports voluntarily submitted by staff.",
    },
    "security_compliance_rate": {
        "name": "Security Compliance", "target": 99, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Security checks passed without findings.",
    },
    "security_breach_incidents": {
        "name": "Security Breaches", "target": 0, "unit": "incidents",
        "direction": _LOWER, "aggregation": _SUM,
        "description": "Confirmed security breaches.",
    },
    "fuel_spill_incidents": {
        "name": "Fuel Spill Incidents", "target": 0, "unit": "incidents",
        "direction": _LOWER, "aggregation": _SUM,
        "description": "Fuel spills during refuelling or GSE operation.",
    },
    # --- Business support ---
    "roster_efficiency": {
        "name": "Roster Efficiency", "target": 95, "unit": "percentage",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Planned shifts matching operational demand.",
    },
    "productivity_per_agent": {
        "name": "Productivity per Agent", "target": 25, "unit": "count",
        "direction": _HIGHER, "aggregation": _AVG,
        "description": "Transactions handled per agent per shift.",
    },
}

# =====================================================================
# ROLE TEMPLATES
# =====================================================================
# Each pillar lists (kpi_id, seed_value). seed_value drives seed history only.

_LEADERSHIP_KPIS = [
    ("employee_turnover", 0.7),
    ("training_completion", 99),
    ("absenteeism_rate", 2.5),
]


def _leadership(weight: float) -> Dict:
    return {
        "id": "leadership_management", "name": "Leadership & Team", "weight": weight,
        "kpis": _LEADERSHIP_KPIS,
    }


ROLE_TEMPLATES: Dict[ManagerRole, List[Dict]] = {
    ManagerRole.RAMP: [
        {"id": "operational_efficiency_ramp", "name": "Ramp Operational Efficiency", "weight": 45,
         "kpis": [("otp", 98.5), ("avg_turnaround_time", 38), ("loading_accuracy", 99.9),
                  ("turnaround_plan_compliance", 97)]},
        {"id": "safety_security_ramp", "name": "Ramp Safety & Security", "weight": 25,
         "kpis": [("accident_rate", 0.5), ("fod_incidents", 0), ("ground_damage_rate", 0.2),
                  ("marshalling_incidents_rate", 0.6)]},
        {"id": "financial_performance_ramp", "name": "Ramp Financial Performance", "weight": 10,
         "kpis": [("cost_per_turnaround", 4500), ("overtime_costs", 65000)]},
        _leadership(20),
    ],
    ManagerRole.PASSENGER: [
        {"id": "customer_satisfaction_pax", "name": "Passenger Satisfaction", "weight": 40,
         "kpis": [("passenger_satisfaction_csat", 88), ("checkin_queue_time", 4),
                  ("formal_complaints", 1), ("prm_wait_time", 12)]},
        {"id": "operational_efficiency_pax", "name": "Service Operational Efficiency", "weight": 30,
         "kpis": [("first_bag_delivery", 14), ("last_bag_delivery", 28),
                  ("boarding_gate_performance", 99), ("baggage_accuracy", 1.8),
                  ("self_checkin_usage", 65)]},
        {"id": "financial_performance_pax", "name": "Service Financial Performance", "weight": 10,
         "kpis": [("overtime_costs", 45000), ("sla_compliance", 99.8)]},
        _leadership(20),
    ],
    ManagerRole.TECHNICAL: [
        {"id": "equipment_reliability", "name": "Equipment Reliability", "weight": 40,
         "kpis": [("gse_availability", 98), ("mean_time_to_repair", 220),
                  ("first_time_fix_rate", 92)]},
        {"id": "maintenance_efficiency", "name": "Maintenance Efficiency", "weight": 30,
         "kpis": [("preventive_maintenance_compliance", 98), ("spare_parts_availability", 95),
                  ("equipment_downtime", 3)]},
        {"id": "financial_performance_tech", "name": "Technical Financial Performance", "weight": 10,
         "kpis": [("budget_adherence", 100), ("overtime_costs", 40000)]},
        _leadership(20),
    ],
    ManagerRole.SAFETY: [
        {"id": "safety_quality_management", "name": "Safety & Quality Management", "weight": 45,
         "kpis": [("audit_compliance", 98), ("corrective_action_closure_rate", 95),
                  ("proactive_safety_reports", 25), ("security_compliance_rate", 99)]},
        {"id": "risk_management", "name": "Risk Management", "weight": 35, "risk_threshold": 85,
         "kpis": [("accident_rate", 1), ("fod_incidents", 0), ("security_breach_incidents", 0),
                  ("fuel_spill_incidents", 0)]},
        _leadership(20),
    ],
    ManagerRole.SUPPORT: [
        {"id": "service_efficiency_support", "name": "Service Efficiency & Support", "weight": 40,
         "kpis": [("sla_compliance", 99.8), ("roster_efficiency", 95),
                  ("productivity_per_agent", 28)]},
        {"id": "financial_performance_support", "name": "Support Financial Performance", "weight": 30,
         "kpis": [("budget_adherence", 98), ("overtime_costs", 30000)]},
        _leadership(30),
    ],
}

# Month-over-month multipliers for seed history (12 months, oldest first)
_SEED_PATTERN = [0.96, 0.98, 1.03, 0.97, 1.01, 1.04, 0.99, 0.95, 1.02, 1.00, 0.97, 1.00]

# =====================================================================
# BUILDERS
# =====================================================================


def build_kpi(kpi_id: str, history: Optional[Dict[str, float]] = None) -> KPI:
    """Create a KPI from its master definition."""
    definition = KPI_DEFINITIONS[kpi_id]
    return KPI(
        id=kpi_id,
        name=definition["name"],
        target=definition["target"],
        weight=definition.get("weight", 1.0),
        direction=definition["direction"],
        aggregation=definition["aggregation"],
        unit=definition["unit"],
        description=definition.get("description", ""),
        history=dict(history or {}),
        benchmark=definition.get("benchmark"),
    )


def build_pillars(role: ManagerRole) -> List[Pillar]:
    """Fresh pillar/KPI tree for a role, with no recorded values."""
    role = ManagerRole(role)
    return [
        Pillar(
            id=template["id"],
            name=template["name"],
            weight=template["weight"],
            kpis=[build_kpi(kpi_id) for kpi_id, _ in template["kpis"]],
            risk_threshold=template.get("risk_threshold"),
        )
        for template in ROLE_TEMPLATES[role]
    ]


def catalog_shape(role: ManagerRole) -> List[Tuple[str, List[str]]]:
    """[(pillar_id, [kpi_id, ...]), ...] in catalog order."""
    return [
        (template["id"], [kpi_id for kpi_id, _ in template["kpis"]])
        for template in ROLE_TEMPLATES[ManagerRole(role)]
    ]


def seed_history(seed_value: float, reference_month: pd.Period, months: int = 12) -> Dict[str, float]:
    """Deterministic monthly history ending at reference_month."""
    pattern = _SEED_PATTERN[-months:]
    start = reference_month - (len(pattern) - 1)
    return {
        str(start + offset): round(seed_value * factor, 2)
        for offset, factor in enumerate(pattern)
    }


def build_seeded_pillars(role: ManagerRole, reference_month: pd.Period, scale: float = 1.0) -> List[Pillar]:
    """
    Pillar tree with 12 months of seed history.

    scale shifts every seed value (e.g. 0.9 = 10% worse for higher-is-better
    KPIs) so the demo roster shows a spread of scores.
    """
    pillars = build_pillars(role)
    templates = {t["id"]: dict(t["kpis"]) for t in ROLE_TEMPLATES[ManagerRole(role)]}
    for pillar in pillars:
        seeds = templates[pillar.id]
        for kpi in pillar.kpis:
            value = seeds[kpi.id]
            if kpi.lower_is_better:
                value = value / scale if scale else value
            else:
                value = value * scale
            kpi.history = seed_history(value, reference_month)
    return pillars


DEFAULT_ROSTER = [
    ("manager_1", "Abdullah H. Algarni", "Baggage Sortation", ManagerRole.PASSENGER, 1.0),
    ("manager_2", "Abdulaziz Mo. Alghamdi", "Dispatch & Roster Partner", ManagerRole.SUPPORT, 0.97),
    ("manager_3", "Rafat Al-Zamzamie", "Hajj & Umrah Ramp", ManagerRole.RAMP, 0.9),
    ("manager_4", "Abdulelah S. Olfat", "Ramp Operations", ManagerRole.RAMP, 1.02),
    ("manager_5", "Omar A. Alodaini", "Passenger Services", ManagerRole.PASSENGER, 0.8),
    ("manager_6", "Khalid R. Alharbi", "Safety & Quality", ManagerRole.SAFETY, 0.95),
    ("manager_7", "Saeed M. Alqahtani", "GSE Maintenance", ManagerRole.TECHNICAL, 0.93),
]


def build_default_managers(reference_month: Optional[pd.Period] = None) -> List[Manager]:
    """Default roster used when the store starts without explicit data."""
    if reference_month is None:
        reference_month = pd.Period.now('M')

    managers = [
        Manager(
            id=manager_id,
            name=name,
            department=department,
            role=role,
            pillars=build_seeded_pillars(role, reference_month, scale),
        )
        for manager_id, name, department, role, scale in DEFAULT_ROSTER
    ]
    logger.info(f"Seeded {len(managers)} managers up to {reference_month}")
    return managers
