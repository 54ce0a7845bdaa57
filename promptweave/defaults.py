"""Built-in agents and workflows loaded when ``seed_defaults`` is enabled."""

from __future__ import annotations

from typing import Any

from loguru import logger

from promptweave.agents.registry import AgentRegistry
from promptweave.workflow.store import WorkflowStore

DEFAULT_AGENTS: list[dict[str, Any]] = [
    {
        "id": "research-agent",
        "name": "Research Agent",
        "description": "Specialized in research and information gathering",
        "role": "researcher",
        "capabilities": ["web_search", "data_analysis", "fact_checking", "summarization"],
        "model": "gpt-4o",
        "system_instructions": (
            "You are a research specialist. Gather, analyze, and synthesize information "
            "from various sources. Always verify facts and provide accurate, well-sourced "
            "information."
        ),
        "temperature": 0.3,
        "max_output_length": 4000,
        "tools": [
            {
                "name": "web_search",
                "description": "Search the web for information",
                "parameters": {
                    "query": {"type": "string", "required": True},
                    "max_results": {"type": "number", "default": 10},
                },
                "handler": "web_search",
            },
            {
                "name": "fact_check",
                "description": "Verify facts against multiple sources",
                "parameters": {
                    "claim": {"type": "string", "required": True},
                    "sources": {"type": "array", "required": True},
                },
                "handler": "fact_check",
            },
        ],
        "memory": {"enabled": True, "max_context": 8000, "persistence": "conversation"},
        "behavior": {
            "personality": "analytical and thorough",
            "tone": "technical",
            "verbosity": "long",
            "proactivity": 0.7,
        },
    },
    {
        "id": "creative-agent",
        "name": "Creative Agent",
        "description": "Specialized in creative writing and content generation",
        "role": "creative_writer",
        "capabilities": ["creative_writing", "storytelling", "content_generation", "brainstorming"],
        "model": "gpt-4o",
        "system_instructions": (
            "You are a creative writing specialist. Generate engaging, original content "
            "across various formats and styles, adapting to different tones and audiences."
        ),
        "temperature": 0.8,
        "max_output_length": 3000,
        "tools": [
            {
                "name": "brainstorm",
                "description": "Generate creative ideas and concepts",
                "parameters": {
                    "topic": {"type": "string", "required": True},
                    "style": {"type": "string", "default": "general"},
                    "count": {"type": "number", "default": 5},
                },
                "handler": "brainstorm",
            },
        ],
        "memory": {"enabled": True, "max_context": 6000, "persistence": "conversation"},
        "behavior": {
            "personality": "creative and imaginative",
            "tone": "creative",
            "verbosity": "medium",
            "proactivity": 0.5,
        },
    },
    {
        "id": "analysis-agent",
        "name": "Analysis Agent",
        "description": "Specialized in data analysis and insights generation",
        "role": "analyst",
        "capabilities": ["data_analysis", "statistical_analysis", "trend_analysis", "insight_generation"],
        "model": "gpt-4o",
        "system_instructions": (
            "You are a data analysis specialist. Analyze data, identify patterns, and "
            "generate actionable insights. Be precise and focus on data-driven conclusions."
        ),
        "temperature": 0.2,
        "max_output_length": 5000,
        "tools": [
            {
                "name": "analyze_data",
                "description": "Analyze structured data",
                "parameters": {
                    "data": {"type": "object", "required": True},
                    "analysis_type": {"type": "string", "required": True},
                },
                "handler": "analyze_data",
            },
        ],
        "memory": {"enabled": True, "max_context": 10000, "persistence": "conversation"},
        "behavior": {
            "personality": "analytical and precise",
            "tone": "technical",
            "verbosity": "long",
            "proactivity": 0.6,
        },
    },
    {
        "id": "coordination-agent",
        "name": "Coordination Agent",
        "description": "Specialized in coordinating multiple agents and managing workflows",
        "role": "coordinator",
        "capabilities": ["workflow_management", "agent_coordination", "task_delegation", "conflict_resolution"],
        "model": "gpt-4o",
        "system_instructions": (
            "You are a coordination specialist. Manage workflows, coordinate between agents, "
            "and ensure smooth execution of complex tasks."
        ),
        "temperature": 0.4,
        "max_output_length": 2000,
        "tools": [
            {
                "name": "delegate_task",
                "description": "Delegate tasks to appropriate agents",
                "parameters": {
                    "task": {"type": "string", "required": True},
                    "agent_capabilities": {"type": "array", "required": True},
                },
                "handler": "delegate_task",
            },
        ],
        "memory": {"enabled": True, "max_context": 12000, "persistence": "global"},
        "behavior": {
            "personality": "organized and strategic",
            "tone": "formal",
            "verbosity": "medium",
            "proactivity": 0.9,
        },
    },
]


def _agent_step(
    step_id: str,
    agent_id: str,
    prompt: str,
    output: str,
    depends_on: list[str],
    timeout: float,
    retries: int,
    on_error: str,
) -> dict[str, Any]:
    return {
        "id": step_id,
        "kind": "ai_agent",
        "config": {"agent_id": agent_id, "prompt": prompt},
        "output_variable": output,
        "depends_on": depends_on,
        "timeout_seconds": timeout,
        "retry_count": retries,
        "on_error": on_error,
    }


DEFAULT_WORKFLOWS: list[dict[str, Any]] = [
    {
        "id": "content-creation-workflow",
        "name": "Content Creation Workflow",
        "description": "Automated content creation using multiple agents",
        "triggers": [{"type": "manual", "config": {}}],
        "variables": {"topic": ""},
        "steps": [
            _agent_step("research", "research-agent", "Research the topic: {{topic}}",
                        "research_data", [], 300, 2, "stop"),
            _agent_step("brainstorm", "creative-agent",
                        "Brainstorm content ideas based on research: {{research_data}}",
                        "content_ideas", ["research"], 180, 2, "continue"),
            _agent_step("create_content", "creative-agent",
                        "Create content based on ideas: {{content_ideas}}",
                        "content", ["brainstorm"], 600, 3, "retry"),
            _agent_step("analyze_quality", "analysis-agent", "Analyze content quality: {{content}}",
                        "quality_analysis", ["create_content"], 120, 1, "continue"),
        ],
    },
    {
        "id": "data-analysis-workflow",
        "name": "Data Analysis Workflow",
        "description": "Comprehensive data analysis using specialized agents",
        "triggers": [
            {"type": "webhook", "config": {"endpoint": "/webhook/data-analysis", "method": "POST"}}
        ],
        "steps": [
            {
                "id": "data_validation",
                "kind": "data_processing",
                "config": {"operation": "validate", "input_variable": "raw_data"},
                "output_variable": "validated_data",
                "timeout_seconds": 60,
                "retry_count": 1,
                "on_error": "stop",
            },
            _agent_step("data_analysis", "analysis-agent", "Analyze data: {{validated_data}}",
                        "analysis_results", ["data_validation"], 300, 2, "retry"),
            _agent_step("generate_insights", "analysis-agent",
                        "Generate insights from analysis: {{analysis_results}}",
                        "insights", ["data_analysis"], 180, 2, "continue"),
            _agent_step("create_report", "research-agent", "Create comprehensive report: {{insights}}",
                        "report", ["generate_insights"], 240, 2, "continue"),
        ],
    },
]


def seed_defaults(agents: AgentRegistry, workflows: WorkflowStore) -> int:
    """Store any built-in agent or workflow not already present. Returns the count added."""
    added = 0
    for data in DEFAULT_AGENTS:
        if agents.find(data["id"]) is None:
            agents.create(data)
            added += 1
    for data in DEFAULT_WORKFLOWS:
        if workflows.find(data["id"]) is None:
            workflows.create(data)
            added += 1
    if added:
        logger.debug("Seeded {} built-in records", added)
    return added
