"""Roundtable — a turn-scheduled conversation among scripted and model-driven guests.

Modules, leaf first:

  models      pydantic types: Participant, Turn, Discussion, SessionState, ...
  phrases     scripted utterances from phrase tables
  characters  built-in characters, custom character helpers, roster refresh
  prompts     Handlebars role instructions and host lines
  llm         chat model clients (Ollama, OpenAI-compatible)
  responder   one generative turn: transcript window + model call
  phases      phase transition table and pure state transitions
  resolver    who speaks next, in which role
  scheduler   the per-discussion tick loop
  config      scheduler settings (delays, timeouts, context window)
  storage     JSON file persistence
  rooms       registry of live schedulers
  app/routes  FastAPI surface
  demo        demo discussion seeding
"""
