from __future__ import annotations

import copy

import pytest

from oppbrief.agents.reconciler import reconcile

COMPANY_SUMMARY = (
    "Acme Corp manufactures precision industrial coatings for automotive and aerospace "
    "customers across Europe, running four plants and an in-house materials lab."
)

RAW_CANDIDATE = {
    "company": {
        "name": "Acme Corp",
        "website": "https://acme.com",
        "summary": COMPANY_SUMMARY,
        "size": "850 employees",
        "industry": "Industrial coatings",
        "headquarters": "Basel, Switzerland",
        "founded": "Founded in 1962",
        "ceo": "Maria Keller",
    },
    "industry": {
        "summary": "Coatings makers are adopting AI for process control and quality inspection.",
        "trends": [
            "Inline vision systems catch coating defects in real time",
            "Process data platforms link lab and line",
            "Energy optimization cuts curing costs",
            "Regulators push for solvent reduction reporting",
        ],
    },
    "strategic_moves": [
        {"move": "Roll out inline defect detection", "owner": "COO", "horizon_quarters": 2, "rationale": "Scrap is the largest avoidable cost."},
        {"move": "Build a process data lake", "owner": "CIO", "horizon_quarters": 3, "rationale": "Every AI use case depends on it."},
        {"move": "Pilot AI-assisted formulation", "owner": "Head of R&D", "horizon_quarters": 4, "rationale": "Shortens lab cycles."},
    ],
    "competitors": [
        {
            "name": "Globex Coatings",
            "website": "https://globex.com",
            "positioning": "Premium aerospace coatings",
            "ai_maturity": "Piloting vision QA",
            "innovation_focus": "Low-VOC chemistry",
            "employee_band": "500-1000",
            "geo_fit": "DACH",
            "evidence_pages": ["https://globex.com", "https://globex.com/about"],
            "citations": ["https://globex.com/news"],
        },
        {
            "name": "Initech Surfaces",
            "website": "https://initech.de",
            "positioning": "Automotive OEM supplier",
            "ai_maturity": "Early",
            "innovation_focus": "Robotic application",
            "employee_band": "1000-5000",
            "geo_fit": "Germany",
            "evidence_pages": ["https://initech.de", "https://initech.de/company"],
            "citations": [],
        },
        {
            "name": "Umbrella Finishes",
            "website": "https://umbrella.co.uk",
            "positioning": "Industrial maintenance coatings",
            "ai_maturity": "Advanced",
            "innovation_focus": "Predictive maintenance",
            "employee_band": "250-500",
            "geo_fit": "UK",
            "evidence_pages": ["https://umbrella.co.uk", "https://umbrella.co.uk/about"],
            "citations": [],
        },
    ],
    "use_cases": [
        {
            "title": "Inline defect detection",
            "description": "Camera-based inspection on coating lines.",
            "value_driver": "cost",
            "complexity": 3,
            "effort": 3,
            "annual_benefit": 240000,
            "one_time_cost": 120000,
            "ongoing_cost": 30000,
            "payback_months": 8,
            "data_requirements": "Labelled defect images",
            "risks": "Lighting variation",
            "next_steps": "Pilot on line 2",
            "citations": ["https://acme.com/quality"],
        },
        {
            "title": "Predictive curing oven maintenance",
            "description": "Forecast oven failures from sensor data.",
            "value_driver": "risk",
            "complexity": 2,
            "effort": 2,
            "annual_benefit": 150000,
            "one_time_cost": 60000,
            "ongoing_cost": 15000,
            "payback_months": 6,
            "data_requirements": "Oven telemetry",
            "risks": "Sparse failure history",
            "next_steps": "Instrument two ovens",
            "citations": [],
        },
        {
            "title": "Demand forecasting",
            "description": "Forecast order volumes per product family.",
            "value_driver": "revenue",
            "complexity": 3,
            "effort": 2,
            "annual_benefit": 180000,
            "one_time_cost": 80000,
            "ongoing_cost": 20000,
            "payback_months": 7,
            "data_requirements": "ERP order history",
            "risks": "Volatile aerospace demand",
            "next_steps": "Back-test on 2023 data",
            "citations": [],
        },
        {
            "title": "AI-assisted formulation",
            "description": "Suggest recipe changes from lab results.",
            "value_driver": "speed",
            "complexity": 4,
            "effort": 4,
            "annual_benefit": 300000,
            "one_time_cost": 200000,
            "ongoing_cost": 40000,
            "payback_months": 10,
            "data_requirements": "Lab notebooks",
            "risks": "Chemist adoption",
            "next_steps": "Digitize lab records",
            "citations": [],
        },
        {
            "title": "Energy optimization",
            "description": "Tune curing profiles to cut gas use.",
            "value_driver": "cost",
            "complexity": 2,
            "effort": 3,
            "annual_benefit": 90000,
            "one_time_cost": 50000,
            "ongoing_cost": 10000,
            "payback_months": 8,
            "data_requirements": "Energy meters",
            "risks": "Quality drift",
            "next_steps": "Baseline consumption",
            "citations": [],
        },
    ],
    "citations": [
        "https://acme.com/about",
        "https://www.reuters.com/acme-expansion",
        "https://acme.com/about#team",
    ],
}


@pytest.fixture
def raw_candidate() -> dict:
    return copy.deepcopy(RAW_CANDIDATE)


@pytest.fixture
def valid_brief(raw_candidate):
    return reconcile(raw_candidate, "Acme Corp", "https://acme.com")
