"""Deterministic plan used whenever the generative backend cannot help."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from taskplanner.db.models.enums import TaskPriority, TaskStatus
from taskplanner.services.plan_types import PlannedTask, PlanRequest, TaskPlan
from taskplanner.services.scheduling import ScheduleCursor

FALLBACK_ANALYSIS = (
    "This is a sample task plan. The AI service is not configured or encountered an error. "
    "Please configure your Gemini API key to get AI-generated plans."
)

FALLBACK_RECOMMENDATIONS = [
    "Configure your Gemini API key in the service environment",
    "Set the GEMINI_API_KEY environment variable (or add it to .env)",
    "Get an API key from: https://aistudio.google.com/app/apikey",
    "Break down large tasks into smaller chunks",
    "Set clear milestones and deadlines",
    "Regular progress reviews help maintain momentum",
]

FALLBACK_RISKS = [
    "Gemini API not configured - using sample data",
    "Scope creep without proper planning",
    "Resource constraints may impact timeline",
    "Inadequate testing may lead to quality issues",
]

FALLBACK_TASK_TEMPLATES: List[Dict[str, Any]] = [
    {
        "title": "Research and Planning for: {goal}",
        "description": "Conduct thorough research and create a detailed project plan",
        "detailed_description": (
            "This initial phase focuses on comprehensive research and strategic planning. Begin by gathering all "
            "relevant information about the project requirements, constraints, and success criteria. Analyze "
            "similar projects or case studies to understand best practices and potential pitfalls. Create a "
            "detailed project plan that outlines milestones, deliverables, and timelines. Document your findings "
            "and share them with stakeholders for feedback. This foundation will guide all subsequent work."
        ),
        "steps": [
            "Gather and analyze project requirements and constraints",
            "Research similar projects and industry best practices",
            "Identify potential risks and mitigation strategies",
            "Create detailed project timeline with milestones",
            "Document findings and get stakeholder approval",
        ],
        "priority": TaskPriority.HIGH,
        "hours": 8,
    },
    {
        "title": "Setup and Preparation",
        "description": "Set up necessary tools, environments, and resources",
        "detailed_description": (
            "In this phase, you'll prepare your working environment and gather necessary resources. Install and "
            "configure all required tools, software, and frameworks. Set up version control, development "
            "environments, and any collaboration platforms. Create initial project structure and documentation "
            "templates. Verify that all team members have access to necessary resources. This preparation ensures "
            "smooth execution of the main implementation phase."
        ),
        "steps": [
            "Install required development tools and frameworks",
            "Configure development and testing environments",
            "Set up version control and collaboration platforms",
            "Create initial project structure and templates",
            "Verify team access to all necessary resources",
        ],
        "priority": TaskPriority.MEDIUM,
        "hours": 6,
    },
    {
        "title": "Core Implementation",
        "description": "Execute the main tasks and deliverables",
        "detailed_description": (
            "This is the main execution phase where you'll implement the core functionality. Break down the work "
            "into manageable chunks and tackle them systematically. Follow coding best practices and maintain "
            "clean, documented code. Regular commits and progress reviews help maintain momentum. Stay focused on "
            "the primary objectives while remaining flexible to adjust as needed. This phase typically consumes "
            "the most time and effort."
        ),
        "steps": [
            "Break down work into manageable tasks",
            "Implement core features following best practices",
            "Write clean, documented code with regular commits",
            "Conduct code reviews and address feedback",
            "Track progress and adjust timeline as needed",
        ],
        "priority": TaskPriority.HIGH,
        "hours": 16,
    },
    {
        "title": "Testing and Quality Assurance",
        "description": "Test all components and ensure quality standards",
        "detailed_description": (
            "Quality assurance is critical for project success. Develop comprehensive test cases covering all "
            "functionality. Perform unit tests, integration tests, and end-to-end testing. Document any bugs or "
            "issues discovered and track their resolution. Involve stakeholders in user acceptance testing when "
            "appropriate. This thorough testing ensures the final product meets all requirements and quality "
            "standards."
        ),
        "steps": [
            "Develop comprehensive test cases and scenarios",
            "Execute unit, integration, and end-to-end tests",
            "Document and prioritize any issues found",
            "Fix bugs and retest affected functionality",
            "Conduct user acceptance testing with stakeholders",
        ],
        "priority": TaskPriority.MEDIUM,
        "hours": 8,
    },
    {
        "title": "Final Review and Deployment",
        "description": "Perform final checks and deploy/deliver the results",
        "detailed_description": (
            "The final phase involves careful review and deployment preparation. Conduct a comprehensive review "
            "of all deliverables against initial requirements. Address any remaining issues or improvements. "
            "Prepare deployment documentation and rollback procedures. Execute the deployment following "
            "established protocols. Monitor the initial deployment closely and be prepared to address any "
            "issues. Celebrate the successful completion of the project."
        ),
        "steps": [
            "Review all deliverables against requirements",
            "Address final improvements and polish",
            "Prepare deployment documentation and procedures",
            "Execute deployment following protocols",
            "Monitor deployment and address any issues",
        ],
        "priority": TaskPriority.CRITICAL,
        "hours": 4,
    },
]


def build_fallback_plan(request: Optional[PlanRequest], now: Optional[datetime] = None) -> TaskPlan:
    """Return the fixed five-task plan, scheduled back to back from ``now``."""
    started_at = now or datetime.now(timezone.utc)
    goal_description = request.description if request and request.description else "Sample Goal"
    cursor = ScheduleCursor(started_at)

    tasks: List[PlannedTask] = []
    for index, template in enumerate(FALLBACK_TASK_TEMPLATES):
        start, end = cursor.place(template["hours"])
        tasks.append(
            PlannedTask(
                title=template["title"].format(goal=goal_description),
                description=template["description"],
                detailed_description=template["detailed_description"],
                steps=list(template["steps"]),
                estimated_duration_hours=template["hours"],
                priority=template["priority"],
                status=TaskStatus.PENDING,
                order_index=index + 1,
                dependencies=[index] if index > 0 else [],
                start_date=start,
                end_date=end,
            )
        )

    return TaskPlan(
        analysis=FALLBACK_ANALYSIS,
        tasks=tasks,
        total_tasks=len(tasks),
        estimated_total_hours=cursor.total_hours,
        suggested_start_date=started_at,
        suggested_end_date=cursor.position,
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        risks=list(FALLBACK_RISKS),
        fallback_used=True,
    )
