"""
TASKCHAT - Request Composer

Builds the generator prompt for one turn: system instructions, the user's
message with their current lists and recent conversation appended, and a
bounded history for backends that take chat messages.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List

from taskchat.chat.session import ChatMessage
from taskchat.config import settings
from taskchat.lists.enums import TaskPriority
from taskchat.lists.models import TaskList


@dataclass
class ComposedPrompt:
    system: str
    user: str
    history: List[Dict[str, str]] = field(default_factory=list)

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def compose_prompt(
    message: str,
    history: List[ChatMessage],
    task_lists: List[TaskList],
    today: date,
) -> ComposedPrompt:
    user_parts = [message]

    if task_lists:
        user_parts.append("")
        user_parts.append("Current Task Lists:")
        user_parts.extend(serialize_lists(task_lists))

    recent = history[-settings.PROMPT_HISTORY_LIMIT:] if settings.PROMPT_HISTORY_LIMIT > 0 else []
    if recent:
        user_parts.append("")
        user_parts.append("Recent conversation:")
        for msg in recent:
            user_parts.append(f"{msg.role}: {msg.content}")

    return ComposedPrompt(
        system=build_system_prompt(today),
        user="\n".join(user_parts),
        history=[msg.to_history() for msg in history[-settings.HISTORY_LIMIT:]] if settings.HISTORY_LIMIT > 0 else [],
    )


def serialize_lists(task_lists: List[TaskList]) -> List[str]:
    """One line per list followed by one line per task: completion mark and non-default priority."""
    lines = []
    for task_list in task_lists:
        lines.append(f"- {task_list.title} ({len(task_list.tasks)} tasks):")
        for task in task_list.tasks:
            line = f"  * {task.title}"
            if task.completed:
                line += " ✓"
            if task.priority != TaskPriority.MEDIUM:
                line += f" [{task.priority.value}]"
            lines.append(line)
    return lines


def build_system_prompt(today: date) -> str:
    prompt_parts = [
        "You are a task management assistant. Stay on the topic of the user's task lists.",
        "",
        f"Today is {today.strftime('%A, %B %d, %Y')} ({today.isoformat()}).",
        "",
        "RULES:",
        "- Check the current task lists before creating a new one. Add to an existing list when the title matches (isAddToExisting: true).",
        "- Never create duplicate lists or re-add a task that is already pending.",
        "- Use short list titles in title case, without a 'List' suffix.",
        "- When it is unclear which list the user means, ask and include NO JSON. Remember the pending item for the next turn.",
        "- 'remove', 'delete', 'take off', 'get rid of' are deletions. Never add tasks for them.",
        "- Before deleting a whole list, ask the user to confirm in plain text. Send deleteList only after they confirm.",
        "- Resolve relative dates against today and write dueDate as YYYY-MM-DD, or null.",
        "",
        "When lists change, append this JSON in a ```json fenced block:",
        "{",
        '  "taskLists": [',
        "    {",
        '      "title": "List Title",',
        '      "category": "optional category",',
        '      "isAddToExisting": true,',
        '      "operation": "add|update|delete|deleteList",',
        '      "newTitle": "optional, update only: rename the list",',
        '      "tasks": [',
        "        {",
        '          "title": "Task title",',
        '          "description": "optional",',
        '          "priority": "low|medium|high",',
        '          "dueDate": "YYYY-MM-DD or null",',
        '          "categories": ["optional", "tags"],',
        '          "completed": false,',
        '          "newTitle": "optional, update only: rename the task"',
        "        }",
        "      ]",
        "    }",
        "  ],",
        '  "suggestions": ["Short follow-up 1", "Short follow-up 2"]',
        "}",
        "",
        "For delete, list only the titles of the tasks to remove. For update, list the tasks by their current title with only the fields to change.",
    ]
    return "\n".join(prompt_parts)
