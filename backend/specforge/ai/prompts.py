from specforge.core.modules import ALL_MODULES


def _module_outline() -> str:
    return "\n".join(
        f"### {i}. {module.name}\n{module.marker}"
        for i, module in enumerate(ALL_MODULES, start=1)
    )


MASTER_SPEC_PROMPT = """You are an expert in product and technical documentation for web-app development.
Create ALL of the following documents for the project described above in a single response, with no skipped steps.

Output format (mandatory):
- Each document starts with a third-level heading of the form "### <number>. <document name>", using exactly the numbers and names below.
- The line directly after each heading is the HTML comment shown below it, copied verbatim. Do not alter or omit it.
- Do not use "### <number>." headings anywhere else; use "####" or deeper for sub-sections.

{outline}

Global instructions for every document:
- Number everything (1, 1.1, 1.1.1) with no skipped levels.
- Edge cases and failure modes: bad inputs, timeouts, third-party outages, auth lapses; give detection, logging, alerting and fallback UX.
- Logging and observability: structured log keys, log levels, correlation IDs.
- Error handling: graceful degradation paths and user messaging.
- Sample code or pseudocode in fenced blocks with language hints for the tricky parts.
- Cross-references: when one document relies on another, cite "see §X.Y".
- Compliance hooks (GDPR / HIPAA / PCI) wherever personal or payment data is touched.
- Flag anything that genuinely needs a later decision with "OPEN QUESTION".
- Tone: blunt and precise, written for competent developers shipping real code.

Per-document expectations:
- PRD: vision and KPIs, personas, feature inventory with acceptance criteria, user stories, phased roadmap, edge cases, expected outcomes.
- Tech Stack Specification: every language, library, service and version, each justified, with fallbacks and local setup steps.
- Project Structure: the full directory tree with the contract of every folder and the risks of misorganisation.
- User Flow (textual): happy path, alternate and error paths, a UI state machine, analytics events.
- Schema Design: every table with field types, constraints, relations, migrations and seed data.
- User Flow Flow-Chart: a complete Mermaid or PlantUML source with legend and render command.
- Backend Structure: services, interface contracts, data layer, failure modes, observability and security touchpoints.
- Implementation Plan: phase timeline, work packages with estimates and risks, critical path, go/no-go criteria.
- Project Rules & Coding Standards: commit hygiene, branching, lint/format config, review checklist, CI gates, definition of done.
- Security Guidelines: STRIDE threat model, authN/authZ, data protection, secure-coding checklist, incident response.
- Styling Guidelines: design tokens, theming, layout and breakpoints, component library, accessibility, loading/empty/error states.
""".format(outline=_module_outline())


GENERATION_PROMPT = """Based on the following user-provided application idea, generate the comprehensive documentation described in the instructions after it.

--- USER'S APP IDEA START ---
{idea_text}
--- USER'S APP IDEA END ---

{master_prompt}"""


ELABORATION_PROMPT = """Based on the following document section:
--- DOCUMENT SECTION START ---
{section_content}
--- DOCUMENT SECTION END ---

Please address the following question or request for elaboration:
"{question}"

Provide a concise, focused and helpful response in Markdown.
If the question is unclear or cannot be answered from this section alone, say so plainly.
Do not refer to yourself. Provide the information directly."""


ANALYSIS_PROMPT = """You are an expert technical reviewer. Analyze the following technical specification and give feedback that improves its clarity, completeness and consistency.

--- BEGIN DOCUMENT ---
{document}
--- END DOCUMENT ---

Organize your response under exactly these headings:

### 1. Potential Ambiguities
### 2. Areas Needing More Detail
### 3. Missing Edge Cases or Scenarios
### 4. Potential Contradictions or Inconsistencies
### 5. General Recommendations

Write each point as a bullet starting with "- ". If a category has nothing to report, write "No specific issues identified in this category."

For every bullet under headings 1 and 2 that concerns a specific section of the document, end the bullet with "(Refers to section: 'SECTION_TITLE')", where SECTION_TITLE is the exact heading text of that section without the leading "### " (for example '3. Project Structure')."""


REGENERATION_PROMPT = """You are an expert technical writer revising one section of a larger document.
Regenerate the content of THIS SECTION ONLY.

The regenerated section MUST:
1. Cover the same topic as the original section.
2. Follow the user instructions below. Without instructions, clarify and improve the original while keeping its purpose and depth.
3. Start with the exact heading line "{heading}", unchanged.
4. Contain nothing but this section: no preamble such as "Here is the regenerated section", and no content from other sections.

Original section (for context):
--- ORIGINAL SECTION CONTENT START ---
{original_content}
--- ORIGINAL SECTION CONTENT END ---

User instructions:
{instructions}

Begin your response with "{heading}"."""


DEFAULT_REGENERATION_INSTRUCTIONS = (
    "No specific instructions provided. Regenerate the section from the original "
    "content, aiming for clarity, completeness and the section's original purpose."
)
