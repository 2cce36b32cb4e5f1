"""
FeynmanMath: terminal tutor for math-competition practice.

Students practice AI-generated problems, discuss their working with a
Feynman-method tutor and keep a notebook of problems they got stuck on.
Coaches manage the student roster and review each student's weak areas.

Subpackages:
- core: Records, errors, topic catalog
- storage: Key-value persistence and typed repository
- accounts: Credentials and roster files
- study: Mistake archives, session continuity, progression, analytics
- tutor: Gemini provider and prompts
- navigation: State machine and TutorApp orchestrator
- cli: Typer/Rich terminal front end
"""

__version__ = "1.0.0"
