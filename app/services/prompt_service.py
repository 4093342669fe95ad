"""
Prompt building: rules + intent-specific instructions + numbered records + question.

Pure function of its inputs so identical questions produce identical prompts
(and therefore share a cache entry).
"""

from app.services.intent_service import IntentResult

DEFAULT_INSTRUCTION = "- Answer the question directly using the records provided."

INTENT_INSTRUCTIONS: dict[str, tuple[str, ...]] = {
    "LOGIN_BY_ID": (
        "- For login ID questions: Report the agent and date of that exact login record.",
        "- If the record says no agent profile was found, say so plainly.",
    ),
    "LAST_LOGIN": (
        "- For 'last login' questions: Find the MOST RECENT date in Login History for the agent.",
        "- Sort login dates descending and return the first one.",
    ),
    "FIRST_LOGIN": (
        "- For 'first login' questions: Return the First Login date for the agent.",
    ),
    "LOGIN_COUNT": (
        "- For login count: Count ALL login entries for the agent and return the number.",
    ),
    "LOGIN_HISTORY": (
        "- For login history: List the login dates shown, most recent first.",
    ),
    "ALL_AGENTS_COMPANY": (
        "- For company queries: List EVERY agent with that company name.",
        "- Format as numbered list with: Name, AgentID, Email.",
    ),
    "COMPANY_COUNT": (
        "- For company counts: Count the agents whose Company matches and state the number.",
    ),
    "INACTIVE_AGENTS": (
        "- For inactive agents: Find agents whose Last Login is oldest or missing.",
        "- Calculate how many days since their last login if possible.",
    ),
    "MOST_ACTIVE": (
        "- For most active: Find the agent with highest Total Logins count.",
        "- Rank agents from most to least active.",
    ),
    "LEAST_ACTIVE": (
        "- For least active: Find the agent with the lowest Total Logins count.",
        "- Rank agents from least to most active.",
    ),
    "NATIONALITY_SEARCH": (
        "- For nationality queries: List ALL agents matching that nationality.",
        "- Include Name, AgentID, Company for each.",
    ),
    "COUNT_QUERY": (
        "- For count queries: Count matching records and give a clear number.",
        "- Example: 'There are 5 agents from XYZ Company.'",
    ),
    "DATE_RANGE": (
        "- For date range queries: Filter login dates that fall within the specified range.",
        "- Return agents who match the date criteria.",
    ),
    "AGENTS_NOT_IN_PROFILE": (
        "- For missing profiles: List each identifier that has logins but no agent profile.",
    ),
    "MULTIPLE_AGENTIDS": (
        "- For duplicate registrations: Group agents that share the same Email and list their AgentIDs.",
    ),
    "LIST_ALL": (
        "- List ALL agents in the records provided.",
        "- Format as a numbered list.",
    ),
    "OUT_OF_SCOPE": (
        "- This question is outside the travel agent database scope.",
        "- Politely say you can only answer questions about agent profiles and login history.",
    ),
}


def build_intent_instructions(intent_result: IntentResult) -> str:
    instructions: list[str] = []
    for label in intent_result.labels:
        instructions.extend(INTENT_INSTRUCTIONS.get(label, ()))
    return "\n".join(instructions) if instructions else DEFAULT_INSTRUCTION


def build_prompt(question: str, contexts: list[str], intent_result: IntentResult) -> str:
    """Assemble the full generation prompt."""
    context_text = "\n\n".join(f"[Record {i}]\n{ctx}" for i, ctx in enumerate(contexts, start=1))
    return f"""You are a travel agent database assistant. Answer questions using ONLY the records below.

=== YOUR RULES ===
{build_intent_instructions(intent_result)}

=== GENERAL RULES ===
- Use ONLY data from the records below. Never invent data.
- If data spans multiple records, JOIN them by AgentID.
- If asked for a list, return ALL matching agents, not just one.
- If no data found after checking all records, say: "No matching records found for your query."
- Format dates as: DD-MMM-YYYY (e.g., 15-Jan-2024)
- Be concise but complete.

=== DATABASE RECORDS ({len(contexts)} found) ===
{context_text}

=== USER QUESTION ===
{question}

=== YOUR ANSWER ==="""
