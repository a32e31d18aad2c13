"""
Prompt templates for code complexity analysis.
"""


RESPONSE_SCHEMA = """{
  "timeComplexity": {
    "bigO": "O(...)",
    "explanation": "Detailed explanation of time complexity analysis",
    "bestCase": "O(...)",
    "averageCase": "O(...)",
    "worstCase": "O(...)"
  },
  "spaceComplexity": {
    "bigO": "O(...)",
    "explanation": "Detailed explanation of space complexity analysis",
    "auxiliary": "O(...)",
    "total": "O(...)"
  },
  "algorithmType": "Type of algorithm (e.g., Two Pointers, Dynamic Programming, etc.)",
  "dataStructures": ["List of data structures used"],
  "optimizationLevel": "Poor|Fair|Good|Excellent",
  "suggestions": [
    {
      "type": "performance|readability|memory",
      "description": "Specific optimization suggestion",
      "impact": "Expected improvement"
    }
  ],
  "strengths": ["List of code strengths"],
  "weaknesses": ["List of potential issues"],
  "alternativeApproaches": [
    {
      "approach": "Alternative algorithm name",
      "timeComplexity": "O(...)",
      "spaceComplexity": "O(...)",
      "tradeoffs": "When to use this approach"
    }
  ],
  "scalability": {
    "rating": "Poor|Fair|Good|Excellent",
    "analysis": "How well the solution scales with input size"
  },
  "codeQuality": {
    "readability": "Poor|Fair|Good|Excellent",
    "maintainability": "Poor|Fair|Good|Excellent",
    "comments": "Assessment of code documentation"
  }
}"""


ANALYSIS_GUIDELINES = """Important guidelines:
- Provide precise Big O notation
- Explain your reasoning clearly
- Give best, average and worst case bounds where they differ
- Consider all loops, recursive calls, and data structure operations
- Account for hidden complexities in built-in functions
- Be specific about optimization opportunities
- Consider edge cases and input constraints"""


def build_analysis_prompt(code: str, language: str = "unknown", problem_title: str = "") -> str:
    """
    Build the analysis prompt for the LLM.

    Args:
        code: Source code to analyze, embedded verbatim
        language: Language tag for the code fence
        problem_title: Optional problem the code solves

    Returns:
        Formatted prompt string
    """
    subject = f' for the problem "{problem_title}"' if problem_title else ""

    return f"""You are an expert software engineer specializing in algorithm analysis and code optimization.

Analyze the following {language} code{subject} and provide a comprehensive complexity analysis.

CODE TO ANALYZE:
```{language}
{code}
```

Please provide your analysis in the following JSON format (respond ONLY with valid JSON):

{RESPONSE_SCHEMA}

{ANALYSIS_GUIDELINES}"""
