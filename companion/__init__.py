"""
Historical figure learning companion engine.

Modules:
- states: Message/SimulationSettings + status enums
- schemas: PersonaProfile/OrchestratorResponse models and JSON decoding
- llm: OpenAI chat client via LangChain (env configuration)
- generator: persona profile generation
- agents: OrchestratorAgent that produces a reply + teacher analytics per turn
- client: GenerationClient combining the two generation calls
- store: ConversationStore holding session state and transitions
- manager: SessionController binding user actions to the client and store
- stream_runner: SessionRunner, the synchronous per-session bridge for the Streamlit UI
- avatars: portrait lookup for a persona profile
"""
