"""
Exam Question Generation Pipeline
generation/

Steps per batch:
1. Prompt Composer    — subject + objective + archetype/context rotation → prompt
2. Provider Clients   — OpenAI / Hugging Face / remote function, tried in order (or raced)
3. Response Parser    — fenced/near-JSON model output → QuestionCandidate (with repair)
4. Fingerprint Engine — duplicate and off-topic rejection against the accepted set
5. Fallback Composer  — curated library fills any slot generation could not
6. Orchestrator       — N concurrent slots, passes with attempt-index offsets, one lock per batch
"""
