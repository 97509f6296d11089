"""Built-in roadmap returned when generation fails."""

from __future__ import annotations

from datetime import datetime

from roadmap_history.schemas.roadmap import Phase, Roadmap


def default_roadmap(now: datetime | None = None) -> Roadmap:
    """A generic five-phase plan from project setup through launch."""
    now = now or datetime.now()
    return Roadmap(
        summary=(
            "This roadmap outlines a phased development plan, moving from project "
            "setup and core infrastructure through module development, integration "
            "testing, and production launch."
        ),
        generated_date=now.isoformat(),
        phases=[
            Phase(
                name="Project Setup & Planning",
                description="Initial project setup, requirements gathering, and architecture design",
                duration="4 weeks",
                priority="high",
                tasks=[
                    "Create Git repository and project structure",
                    "Document functional and non-functional requirements",
                    "Design system architecture",
                    "Create detailed project timeline",
                ],
            ),
            Phase(
                name="Core Infrastructure Development",
                description="Development of core system infrastructure and base components",
                duration="8 weeks",
                priority="high",
                dependencies=["Project Setup & Planning"],
                tasks=[
                    "Design and implement database schema",
                    "Implement user authentication and authorization",
                    "Set up API framework and base endpoints",
                    "Develop reusable UI components",
                ],
            ),
            Phase(
                name="Module Development",
                description="Development of individual system modules",
                duration="12 weeks",
                priority="medium",
                dependencies=["Core Infrastructure Development"],
                tasks=[
                    "Implement user management functionality",
                    "Develop main dashboard and analytics",
                    "Implement reporting and data visualization",
                    "Create system-wide notification functionality",
                ],
            ),
            Phase(
                name="Integration & Testing",
                description="System integration, testing, and quality assurance",
                duration="6 weeks",
                priority="medium",
                dependencies=["Module Development"],
                tasks=[
                    "Perform integration testing across all modules",
                    "Conduct performance and load testing",
                    "Perform security testing and vulnerability assessment",
                    "Address issues identified during testing",
                ],
            ),
            Phase(
                name="Deployment & Launch",
                description="System deployment, user training, and official launch",
                duration="4 weeks",
                priority="high",
                dependencies=["Integration & Testing"],
                tasks=[
                    "Prepare deployment strategy and rollback plan",
                    "Create user manuals and documentation",
                    "Conduct training sessions for end users",
                    "Deploy system to production environment",
                ],
            ),
        ],
    )
