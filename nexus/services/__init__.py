"""
Report Services — the LLM-backed collaborators of the wizard.

Modules:
- places: PlaceResolutionService — regional cities, cache-first with stale fallback
- reports: ReportGenerationService — streamed report bodies
- opportunities: OpportunityFeed — live projects/tenders and deep-dive analysis
- letters: draft_outreach_letter — introductory letter from a report
- prompts: system prompts and tier/option directives
"""
