"""Review prompts for Salesforce source files.

Every prompt starts from a shared base (what to look for, how to report it)
and adds focus areas for the file's kind. Pull request reviews append diff
reading instructions and the file's change statistics.
"""

from salesforce_reviewer.models.files import ChangedFile, FileCategory, FileKind

BASE_PROMPT = """You are an expert Salesforce developer and code reviewer. Analyze the provided code and identify ONLY issues, bugs, security vulnerabilities, performance problems, and areas for improvement.

**CRITICAL INSTRUCTIONS:**
- Focus ONLY on negative feedback - issues, bugs, vulnerabilities, and improvements
- Do NOT provide positive feedback or praise
- Be precise and concise - maximum 2-3 sentences per issue
- Provide specific line numbers for each issue
- Focus on actionable feedback that developers can immediately address

**Review Focus Areas:**
1. **Security**: SOQL/SOSL injection, sharing violations, unescaped data
2. **Performance**: Inefficient queries, non-bulkified operations, governor limits
3. **Best Practices**: Proper exception handling, code organization, naming conventions
4. **Maintainability**: Code complexity, duplicate logic, hard-coded values
5. **Bugs**: Logic errors, null pointer risks, incorrect implementations

Analyze the code critically and provide specific, actionable feedback."""

APEX_CLASS_FOCUS = """**Apex Class Specific Focus:**
- **Bulkification**: Check for non-bulkified operations in loops
- **SOQL Limits**: Identify queries inside loops or inefficient query patterns
- **Exception Handling**: Missing try-catch blocks, inappropriate exception types
- **Security**: Missing @AuraEnabled(cacheable=true) where appropriate, sharing violations
- **Governor Limits**: CPU time, heap size, SOQL query limits
- **Testing**: Missing @IsTest annotations, insufficient test coverage patterns
- **Inheritance**: Improper use of virtual/abstract, missing override annotations
- **Static vs Instance**: Incorrect method modifiers affecting performance"""

APEX_TRIGGER_FOCUS = """**Apex Trigger Specific Focus:**
- **Bulkification**: Ensure all operations handle multiple records correctly
- **Recursion**: Missing recursion prevention mechanisms
- **Context Variables**: Improper use of Trigger.isInsert, isUpdate, etc.
- **SOQL in Loops**: Queries inside trigger loops causing governor limit issues
- **DML Operations**: Missing bulkified DML, inefficient database operations
- **Business Logic**: Logic that should be in handler classes instead of triggers
- **Error Handling**: Missing proper exception handling for DML operations
- **Testing**: Bulk testing scenarios, negative test cases"""

LWC_FOCUS = """**Lightning Web Component Specific Focus:**
- **Security**: Missing @api decorator validation, unescaped HTML output
- **Performance**: Inefficient lifecycle hooks, unnecessary re-renders, large data handling
- **Accessibility**: Missing ARIA labels, keyboard navigation, screen reader support
- **Error Handling**: Missing error boundaries, improper error display to users
- **Data Binding**: Two-way binding issues, reactive property problems
- **Wire Service**: Incorrect @wire usage, missing error handling for server calls
- **Event Handling**: Memory leaks from unremoved event listeners
- **CSS/Styling**: SLDS compliance issues, responsive design problems"""

AURA_FOCUS = """**Aura Component Specific Focus:**
- **Security**: Unescaped output, improper attribute validation
- **Performance**: Inefficient component lifecycle, excessive server calls
- **Event Handling**: Missing event propagation control, memory leaks
- **Attribute Validation**: Missing required attribute checks, type validation
- **Component Communication**: Improper use of component events vs application events
- **Deprecated Patterns**: Usage of deprecated Aura features that should use LWC
- **Error Handling**: Missing error states, improper user feedback"""

FLOW_FOCUS = """**Salesforce Flow Specific Focus:**
- **Performance**: Inefficient loops, excessive DML operations within flows
- **Error Handling**: Missing fault connectors, inadequate error messaging
- **Bulk Processing**: Non-bulkified operations, individual record processing in loops
- **Governor Limits**: CPU time limits, DML statement limits, SOQL query limits
- **Security**: Missing field-level security checks, sharing rule violations
- **Maintenance**: Hard-coded values, lack of documentation, complex flow logic
- **Best Practices**: Improper use of subflows, excessive automation conflicts"""

OBJECT_FOCUS = """**Salesforce Object/Field Metadata Specific Focus:**
- **Security**: Missing field-level security, inappropriate sharing settings
- **Data Model**: Poor field types, missing required validations, incorrect relationships
- **Performance**: Missing indexes on lookup fields, inefficient formula fields
- **Governance**: Missing field descriptions, poor naming conventions
- **Validation Rules**: Incomplete validation logic, user-unfriendly error messages
- **Relationships**: Circular references, missing cascade delete considerations
- **Best Practices**: Hard-coded picklist values, missing help text"""

PERMISSION_FOCUS = """**Permission Set/Profile Specific Focus:**
- **Security**: Over-privileged access, missing field-level security
- **Compliance**: Inappropriate system permissions, admin-level access to users
- **Maintenance**: Redundant permissions, unclear permission groupings
- **Best Practices**: Missing least-privilege principle, inappropriate default settings
- **Conflicts**: Conflicting permissions across different permission sets"""

_KIND_FOCUS = {
    FileKind.APEX_CLASS: APEX_CLASS_FOCUS,
    FileKind.APEX_TRIGGER: APEX_TRIGGER_FOCUS,
    FileKind.FLOW: FLOW_FOCUS,
    FileKind.METADATA_OBJECT: OBJECT_FOCUS,
    FileKind.PERMISSION: PERMISSION_FOCUS,
}

_FRAMEWORK_FOCUS = {
    "lwc": LWC_FOCUS,
    "aura": AURA_FOCUS,
}

DIFF_INSTRUCTIONS = """**PULL REQUEST DIFF REVIEW INSTRUCTIONS:**

You are reviewing a GitHub Pull Request diff, not a complete file. Focus your analysis on:

1. **CHANGED LINES ONLY**: Only review the lines marked with + (additions) and - (deletions)
2. **CHANGE CONTEXT**: Consider how the changes affect the surrounding unchanged code
3. **DIFF FORMAT**: The input is in git diff format:
   - Lines starting with '+' are additions (NEW CODE TO REVIEW)
   - Lines starting with '-' are deletions (OLD CODE BEING REMOVED)
   - Lines starting with ' ' (space) are context (unchanged)
   - @@ lines show line numbers

**KEY FOCUS AREAS:**
- New bugs introduced by the added code
- Security vulnerabilities in new code
- Performance issues with new logic
- Salesforce governor limit violations in new operations
- Best practice violations in changed code

**IMPORTANT**:
- Provide line numbers relative to the NEW file (+ lines)
- Only flag issues with the CHANGED code, not existing unchanged code
- Be more critical since this is new code being added"""


def get_prompt_for_category(category: FileCategory | None) -> str:
    """Get the base prompt plus the focus section for a file category."""
    if category is None:
        return BASE_PROMPT

    focus = _FRAMEWORK_FOCUS.get(category.framework or "") or _KIND_FOCUS.get(category.kind)
    if focus is None:
        return BASE_PROMPT
    return f"{BASE_PROMPT}\n\n{focus}"


def build_pr_review_prompt(category: FileCategory | None, file: ChangedFile) -> str:
    """Build the prompt for reviewing one changed file of a pull request."""
    return f"""{get_prompt_for_category(category)}

{DIFF_INSTRUCTIONS}

File: {file.path}
Changes: +{file.additions} -{file.deletions} ({file.changes} total changes)"""
