NARRATIVE_PROMPT = """You are a recruiter assistant. Write a short assessment of how this candidate fits the role.
Return JSON: {{"narrative": "<2-3 sentences>"}}

POSITION:
{position}

REQUIRED EXPERIENCE:
{required_experience}

FIT SCORE: {fit_score}/100 ({tier})

MATCHING SKILLS:
{matching_skills}

MISSING SKILLS:
{missing_skills}
"""
