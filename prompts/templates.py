"""Prompt templates.

Variables use ``{{name}}`` syntax. ``{{today_id}}`` (YYYYMMDD) and
``{{today_date}}`` (YYYY-MM-DD) are computed at render time, and
``{{JSON.stringify(var)}}`` inserts ``var`` as pretty-printed JSON.
"""

SYSTEM = """You are a pragmatic product/engineering copilot trained on modern agile practices. You write **concise, unambiguous** specs. You prefer bullet-point clarity over prose. You surface **ambiguities** and **risks** explicitly. You generate **structured JSON** that matches the provided schema, and an accompanying human-readable summary.

Guidelines:
- Never fabricate org-specific facts; ask questions instead
- Use domain vocabulary only if present in the input/context or project context
- Keep lists short and high-signal; default max 7 items per list
- Use stable IDs with today's date prefix for easy diffing
- Keep acceptance criteria in Given/When/Then form for QA handoff
- Always include QA and Docs placeholders in task breakdown
- Group tasks with area and prereqs for natural ordering"""


SPEC_GENERATION = """{{system_prompt}}

RESOLVED PROJECT CONTEXT:
{{JSON.stringify(resolved_context)}}

USER INPUT:
{{JSON.stringify(input)}}

INSTRUCTIONS:
Generate a {{mode}} specification using stable IDs prefixed with "{{today_id}}" (e.g., "FR-{{today_id}}-001", "T-{{today_id}}-001").

CRITICAL SCHEMA REQUIREMENTS:
- "input": Must include the exact input object provided above
- "resolved_context": Must include the exact resolved context provided above
- "story": Object with "as_a", "i_want", "so_that", "acceptance_criteria" (array of strings)
- "tasks": Array of objects, each with:
  - "id": string (e.g., "T-{{today_id}}-001")
  - "title": string (descriptive task name)
  - "area": MUST be one of: "FE", "BE", "Infra", "QA", "Docs" (no other values allowed)
  - "details": string (implementation details)
  - "prereqs": array of strings (default: [])
  - "artifacts": array of strings (default: [])
- "estimation": Object with:
  - "confidence": number between 0 and 1
  - "complexity": one of "XS", "S", "M", "L", "XL"
  - "drivers": array of strings
  - "notes": string
- "functional_requirements": Array with "id" and "statement" fields
- "needs_clarification": Array of objects with "topic", "question", "why_it_matters" (default: [])
- "assumptions": Array of strings (default: [])
- "dependencies": Array of strings (default: [])
- "edge_cases": Array of strings (default: [])
- "risks": Array with "risk" and "mitigation" fields (default: [])

EXAMPLE STRUCTURE:
{
  "input": /* the exact input object */,
  "resolved_context": /* the exact resolved context */,
  "story": {
    "as_a": "user",
    "i_want": "to do something",
    "so_that": "I achieve a goal",
    "acceptance_criteria": ["Given...", "When...", "Then..."]
  },
  "tasks": [
    {
      "id": "T-{{today_id}}-001",
      "title": "Setup frontend components",
      "area": "FE",
      "details": "Create React components for...",
      "prereqs": [],
      "artifacts": ["Component files"]
    }
  ],
  "estimation": {
    "confidence": 0.8,
    "complexity": "M",
    "drivers": ["New technology"],
    "notes": "Standard implementation"
  },
  "functional_requirements": [
    {
      "id": "FR-{{today_id}}-001",
      "statement": "System must..."
    }
  ],
  "needs_clarification": [],
  "assumptions": [],
  "dependencies": [],
  "edge_cases": [],
  "risks": []
}

RESPOND WITH ONLY VALID JSON. NO OTHER TEXT."""


CLARIFYING_QUESTIONS = """Given the input and resolved context, identify 3-5 questions that would most reduce ambiguity in the specification. Focus on:
- Missing business logic or edge cases
- Unclear functional requirements
- Ambiguous stakeholder expectations
- Technical implementation gaps
- Integration dependencies

IMPORTANT: Respond with ONLY a valid JSON object that matches the ClarifyingQuestions schema. Do not include any other text, markdown, or explanations.

RESOLVED PROJECT CONTEXT: {{JSON.stringify(resolved_context)}}

USER INPUT: {{JSON.stringify(input)}}

Respond with a JSON object containing a "questions" array (each item with "topic", "question" and "why_it_matters") and an "estimated_confidence" number between 0 and 1."""


REFINE_SPEC = """SYSTEM: {{system_prompt}}

ORIGINAL SPECIFICATION: {{JSON.stringify(original_spec)}}

CLARIFYING ANSWERS:
{{answers_formatted}}

INSTRUCTIONS:
Update only the affected sections based on the clarifying answers. Return a partial specification object with only the changed fields.

RESPONSE FORMAT:
- Provide a JSON object with only the updated fields."""


TEMPLATES = {
    "system": SYSTEM,
    "spec-generation": SPEC_GENERATION,
    "clarifying-questions": CLARIFYING_QUESTIONS,
    "refine-spec": REFINE_SPEC,
}
