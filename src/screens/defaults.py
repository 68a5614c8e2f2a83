"""Built-in screen templates.

The technician dashboard is authored in the flat field style of the first
iOS clients (``key``, ``itemView``, ``font``, ``conditionKey``); the decoder
upgrades it like any other legacy template.
"""

from typing import Any

TECHNICIAN_DASHBOARD_ID = "technician-dashboard"


def _metric(node_id: str, caption: str, value: str) -> dict[str, Any]:
    return {
        "id": node_id,
        "type": "vstack",
        "children": [
            {"id": f"{node_id}-caption", "type": "text", "text": caption, "font": "caption", "color": "secondary"},
            {"id": f"{node_id}-value", "type": "text", "text": value, "font": "title3"},
        ],
    }


def _job_button(action: str, label: str) -> dict[str, Any]:
    return {
        "id": f"{action}-button",
        "type": "button",
        "label": label,
        "action": {"type": "invoke", "target": action, "parameters": {"jobId": "{{item.id}}"}},
    }


def technician_dashboard() -> dict[str, Any]:
    """Daily route dashboard for field technicians."""
    job_row = {
        "id": "job-row",
        "type": "vstack",
        "children": [
            {
                "id": "job-summary",
                "type": "hstack",
                "children": [
                    {
                        "id": "job-details",
                        "type": "vstack",
                        "children": [
                            {"id": "customer", "type": "text", "key": "customerName", "font": "headline"},
                            {"id": "address", "type": "text", "key": "address", "font": "subheadline", "color": "secondary"},
                            {"id": "scheduled", "type": "text", "key": "scheduledTime", "font": "caption", "color": "secondary"},
                        ],
                    },
                    {"id": "job-spacer", "type": "spacer"},
                    {"id": "status", "type": "text", "key": "status", "font": "caption", "color": "statusColor"},
                ],
            },
            {
                "id": "pinned-notes",
                "type": "conditional",
                "conditionKey": "item.pinnedNotes",
                "children": [
                    {"id": "pinned-notes-text", "type": "text", "key": "pinnedNotes", "font": "caption", "color": "warning"},
                ],
            },
            {
                "id": "job-actions",
                "type": "hstack",
                "children": [
                    _job_button("startJob", "Start"),
                    _job_button("completeJob", "Complete"),
                    _job_button("skipJob", "Skip"),
                ],
            },
        ],
    }

    communications = {
        "id": "communications",
        "type": "vstack",
        "children": [
            {"id": "communications-title", "type": "text", "text": "Communications", "font": "headline"},
            {
                "id": "customer-alerts",
                "type": "conditional",
                "conditionKey": "route.hasCustomerAlerts",
                "children": [
                    {"id": "alert-summary", "type": "text", "text": "{{route.alertSummary}}", "font": "body", "color": "warning"},
                ],
            },
            {
                "id": "compliance-tasks",
                "type": "conditional",
                "conditionKey": "route.hasComplianceTasks",
                "children": [
                    {
                        "id": "compliance-headline",
                        "type": "text",
                        "text": "{{route.complianceHeadline}}",
                        "font": "body",
                        "color": "critical",
                    },
                ],
            },
        ],
    }

    return {
        "id": TECHNICIAN_DASHBOARD_ID,
        "version": 5,
        "title": "Today",
        "component": {
            "id": "dashboard-scroll",
            "type": "scroll",
            "children": [
                {
                    "id": "dashboard",
                    "type": "vstack",
                    "children": [
                        {"id": "greeting", "type": "text", "text": "Good day, {{user.name}}", "font": "title2"},
                        {
                            "id": "route-summary",
                            "type": "text",
                            "text": "{{request.routeLabel}} • {{request.serviceDateLabel}}",
                            "font": "subheadline",
                            "color": "secondary",
                        },
                        {
                            "id": "metrics",
                            "type": "hstack",
                            "children": [
                                _metric("jobs-today", "Jobs today", "{{todayJobsCompleted}}"),
                                _metric("week-total", "Week total", "{{weekJobsCompleted}}"),
                                _metric("streak", "Streak", "{{activeStreak}} days"),
                            ],
                        },
                        {"id": "metrics-divider", "type": "divider"},
                        {"id": "jobs", "type": "list", "dataSource": "jobs", "itemView": job_row},
                        {"id": "jobs-divider", "type": "divider"},
                        communications,
                        {
                            "id": "sync-footer",
                            "type": "text",
                            "text": "Last sync {{lastSync}} • Profile {{profileCompleteness}} complete",
                            "font": "caption",
                            "color": "secondary",
                        },
                    ],
                },
            ],
        },
    }


def default_templates() -> dict[str, dict[str, Any]]:
    """Templates every memory store starts with."""
    return {TECHNICIAN_DASHBOARD_ID: technician_dashboard()}
