"""默认种子数据

集合从未写入过时，TaskTemplateStore / TaskBundleStore 在 initialize() 中写入以下定义。
"""

from typing import Any

from ..config import ANY_STAGE

DEFAULT_TEMPLATES: list[dict[str, Any]] = [
    {
        "title": "Initial Case Assessment",
        "description": "Review case documents and assess initial complexity",
        "category": "Assessment",
        "priority": "High",
        "estimated_hours": 2,
        "assigned_role": "Associate",
        "stage_scope": [ANY_STAGE],
        "suggest_on_stage_change": True,
        "auto_create_on_stage_change": False,
    },
    {
        "title": "Prepare Reply to Notice",
        "description": "Draft comprehensive reply addressing all points raised in the notice",
        "category": "Notice Reply",
        "priority": "High",
        "estimated_hours": 8,
        "assigned_role": "Senior Associate",
        "stage_scope": [ANY_STAGE],
        "suggest_on_stage_change": True,
        "auto_create_on_stage_change": False,
    },
    {
        "title": "Hearing Preparation",
        "description": "Prepare hearing documents, arguments, and strategy",
        "category": "Hearing",
        "priority": "High",
        "estimated_hours": 4,
        "assigned_role": "Senior Associate",
        "stage_scope": [ANY_STAGE],
        "suggest_on_stage_change": True,
        "auto_create_on_stage_change": False,
    },
    {
        "title": "Document Compilation",
        "description": "Compile and organize all case documents for submission",
        "category": "Documentation",
        "priority": "Medium",
        "estimated_hours": 3,
        "assigned_role": "Paralegal",
        "stage_scope": [ANY_STAGE],
        "suggest_on_stage_change": False,
        "auto_create_on_stage_change": False,
    },
    {
        "title": "Appeal Filing",
        "description": "Prepare and file appeal to next appellate authority",
        "category": "Appeal",
        "priority": "High",
        "estimated_hours": 6,
        "assigned_role": "Partner",
        "stage_scope": [ANY_STAGE],
        "suggest_on_stage_change": True,
        "auto_create_on_stage_change": False,
    },
]

DEFAULT_BUNDLES: list[dict[str, Any]] = [
    {
        "name": "Notice Reply Kit",
        "description": "Standard work when a scrutiny or demand notice is received",
        "stages": ["Scrutiny", "Demand"],
        "trigger": "case_stage_changed",
        "execution_mode": "Sequential",
        "bundle_code": "NOTICE_REPLY",
        "items": [
            {
                "id": "notice-review",
                "title": "Review notice and identify issues",
                "priority": "High",
                "estimated_hours": 2,
                "assigned_role": "Associate",
                "category": "Assessment",
                "order_index": 0,
                "due_offset": "+2d",
            },
            {
                "id": "notice-draft-reply",
                "title": "Draft reply to notice",
                "priority": "High",
                "estimated_hours": 6,
                "assigned_role": "Senior Associate",
                "category": "Notice Reply",
                "order_index": 1,
                "dependencies": ["notice-review"],
                "due_offset": "+7d",
            },
            {
                "id": "notice-partner-review",
                "title": "Partner review of reply",
                "priority": "Medium",
                "estimated_hours": 1,
                "assigned_role": "Partner",
                "category": "Review",
                "order_index": 2,
                "dependencies": ["notice-draft-reply"],
                "due_offset": "+10d",
            },
        ],
    },
    {
        "name": "Hearing Preparation Kit",
        "description": "Parallel preparation work once a hearing is scheduled",
        "stages": ["Adjudication", "First Appeal", "Tribunal"],
        "trigger": "hearing_scheduled",
        "execution_mode": "Parallel",
        "bundle_code": "HEARING_PREP",
        "items": [
            {
                "id": "hearing-brief",
                "title": "Prepare hearing brief",
                "priority": "Critical",
                "estimated_hours": 4,
                "assigned_role": "Senior Associate",
                "category": "Hearing",
                "order_index": 0,
                "due_offset": "+3d",
            },
            {
                "id": "hearing-paperbook",
                "title": "Compile paper book",
                "priority": "High",
                "estimated_hours": 3,
                "assigned_role": "Paralegal",
                "category": "Documentation",
                "order_index": 1,
                "due_offset": "+2d",
                "checklist": ["Index", "Annexures", "Authorities"],
            },
        ],
    },
]
