# backend/app/core/prompts.py

from backend.app.core.scoring import StatusThresholds

CLASSIFIER_SYSTEM = (
    "You are a LENIENT document classifier. Accept ANY document that could be a resume/CV, "
    "including creative layouts, portfolios, or unconventional formats. Only reject obvious "
    "non-resumes like academic papers, reports, or invoices. Respond with only \"true\" or \"false\"."
)

CLASSIFIER_USER = """Determine if this is a resume/CV. Be LENIENT - accept any document that shows:
- ANY mention of skills, experience, or projects
- Contact info (name, email, phone) OR professional profile
- Education OR work history
- Technical skills OR professional abilities

ACCEPT: Traditional resumes, modern layouts, creative designs, portfolios, CVs
REJECT ONLY: Academic papers, project reports, research documents, invoices, letters

DOCUMENT TEXT:
{sample}

Respond with ONLY "true" if this could be a resume/CV, or "false" if it's clearly not. When in doubt, say "true"."""

SCORING_SYSTEM = (
    "You are an expert technical recruiter with balanced, professional judgment. You read resumes "
    "thoroughly, recognize both strengths and gaps honestly, and always answer with a single JSON object."
)

SCORING_USER = """Perform a REALISTIC and BALANCED analysis of the Resume against the Job Description.
READ THE ENTIRE RESUME CAREFULLY, from start to finish.

1. Job Description Analysis
   - Extract the required skills and split them into:
     - Core skills (must-have for the role)
     - Preferred skills (nice-to-have)

2. Resume Analysis
   - A skill is present if it appears ANYWHERE in the resume: skills section, experience,
     projects, education, tools. Matching is case-insensitive and accepts common variants
     (React/ReactJS/React.js, AWS/Amazon Web Services, SQL/MySQL/PostgreSQL, Git/GitHub/GitLab,
     HTML5 → HTML, Python 3 → Python).
   - Apply reasonable conceptual mapping:
     - MongoDB or another document store → satisfies a NoSQL requirement
     - Express.js → satisfies a Node.js requirement (a framework implies its runtime)
     - Jenkins + Docker + a cloud provider → implies CI/CD pipeline experience
     - Django/Flask → backend API skills, transferable to similar frameworks
     - Any cloud provider (AWS/Azure/GCP) → cloud computing knowledge
   - Never mark a skill as missing if it appears anywhere in the resume text.
   - Judge project quality: meaningful usage versus keyword listing.

3. Implied Skills
   - Write a concise narrative (impliedSkills) describing inferred skills with concrete examples
     from the resume.

4. Score, starting from 0:
   - each Core skill matched: +7
   - each Core skill missing: -8
   - each Preferred skill matched: +3
   - each Preferred skill missing: -1
   - multiply by a project quality multiplier between 0.9 and 1.15
   - if more than 40% of Core skills are missing, cap the score at 60
   - if more than 60% of Core skills are missing, cap the score at 45
   - clamp to an integer between 0 and 100

5. Status thresholds: {thresholds}

Job Description:
{job_description}

Resume:
{resume}

Respond with ONLY a valid JSON object (no markdown, no explanation) with this structure:
{{"matchScore": <integer 0-100>,
 "scoreRationale": "<string>",
 "coreSkills": {{"matched": ["<skill>"], "missing": ["<skill>"]}},
 "preferredSkills": {{"matched": ["<skill>"], "missing": ["<skill>"]}},
 "projectQualityMultiplier": <number 0.9-1.15>,
 "matchingSkills": ["<skill>"],
 "missingSkills": ["<skill>"],
 "impliedSkills": "<string>",
 "strengths": ["<string>"],
 "recommendations": ["<string>"]}}"""


def classifier_messages(sample: str) -> list:
    return [
        {"role": "system", "content": CLASSIFIER_SYSTEM},
        {"role": "user", "content": CLASSIFIER_USER.format(sample=sample)},
    ]


def scoring_messages(job_description: str, resume: str, thresholds: StatusThresholds) -> list:
    return [
        {"role": "system", "content": SCORING_SYSTEM},
        {
            "role": "user",
            "content": SCORING_USER.format(
                thresholds=thresholds.describe(),
                job_description=job_description,
                resume=resume,
            ),
        },
    ]
