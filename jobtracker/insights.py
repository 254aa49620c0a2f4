"""Requirement extraction and tailoring packets for a single job."""
from __future__ import annotations

from typing import Any

from jobtracker.models import Job

TECH_KEYWORDS: list[str] = [
    "React", "Node.js", "JavaScript", "TypeScript", "Python",
    "SQL", "MongoDB", "PostgreSQL", "AWS", "Docker", "Git",
    "REST API", "GraphQL", "Express", "Next.js", "Vue", "Angular",
    "Redux", "HTML", "CSS", "Tailwind", "Bootstrap", "Jest",
    "CI/CD", "Kubernetes", "Redis", "Microservices",
]

TAILORING_ACTION = "Tailor resume and cover letter"


def extract_requirements(job: Job) -> dict[str, Any]:
    """Known tech keywords mentioned in the description (substring match)."""
    desc = (job.description or "").lower()
    return {
        "job": {
            "id": job.id,
            "title": job.title,
            "company": job.company,
            "experience_level": job.experience_level,
        },
        "skills": [k for k in TECH_KEYWORDS if k.lower() in desc],
        "description": job.description,
    }


def tailoring_packet(job: Job) -> dict[str, str]:
    return {
        "job_title": job.title,
        "company": job.company,
        "location": job.location,
        "job_description": job.description,
        "job_url": job.url,
        "salary_range": job.salary or "Not specified",
    }
