"""Prompt templates for advisory tasks.

Templates use ``string.Template`` placeholders (``$name``) so HCL braces in
the instructions need no escaping.
"""

from string import Template


INVENTORY_DIFF = Template("""\
Your task is to compare the sites that exist in the remote account with the \
sites declared in the operator's configuration.

Steps:
1. Call the list_remote_resources tool with page_size $page_size, starting at \
page_num 0. Keep calling it with the next page_num until a response reports \
has_more = false. Do not stop before all pages are consumed.
2. Compare the remote sites with the declared resources below. A remote site \
is declared when a declared resource has the same type and id.
3. For every remote site that is NOT declared, output exactly these two blocks:

add these resources to your configuration:
resource "<resource_type>" "<site_name>" { name = "<site_name>" }

run this import commands
terraform import <resource_type>.<site_name> <resource_id>

Rules:
- Output only these blocks, with no additional words, explanations, or text.
- Never output a block for a site that is present in both sets.
- Replace every character of <site_name> that is not a letter, digit, \
underscore or hyphen with an underscore.
- If the tool returns an error or no remote sites, output nothing.
- If a tool call is required to obtain the data, call it.
$direction_rule

Declared resources (JSON array of {type, id} pairs):
$declared_resources
""")


GENERAL_BEST_PRACTICES = Template("""\
You are an expert Terraform engineer and cloud architect.
Analyze the Terraform code below and suggest improvements that follow \
Terraform best practices (https://www.terraform-best-practices.com/).

Review areas, in priority order:
1. Secrets hygiene: no hard-coded passwords, keys or tokens; sensitive \
variables marked as sensitive.
2. Least privilege: no overly permissive access rules or roles.
3. Provider configuration: version pinning, deprecated arguments.
4. Modularity: repeated blocks that should become modules or for_each.
5. Variable and input validation: hard-coded values that should be \
variables; variables with types, validation rules and defaults.
6. Naming and tagging: consistent, meaningful resource names and metadata \
tags (environment, owner, purpose).
7. Cost efficiency: wasteful or costly configuration.

For every issue use exactly this format:

Issue <number> - <short title>

Original snippet:
<original>

Improved snippet:
<improved, complete block ready to paste>

Explanation:
<why the change is needed>

Finish with:

Summary of Improvements
- <one bullet per key change>

Rules:
- Do not invent resources, arguments or architecture not implied by the code.
- Keep existing names unless renaming is the improvement; never reuse a name that already exists.
- Prefer additive changes over destructive ones and call out anything dangerous or costly.
- If you are unsure about something, write UNCERTAIN and explain why.
- If the configuration is already optimal, say so and explain why.

The current Terraform configuration:
$raw_configuration
""")


DEPRECATED_RESOURCE_REPLACEMENT = Template("""\
You are an expert Terraform engineer specializing in provider-level correctness.
Compare the Terraform configuration below against the provider documentation \
and report configuration that no longer matches it.

Look for, in priority order:
1. Deprecated resources.
2. Deprecated arguments or attributes.
3. Removed or breaking-change arguments.
4. Misconfigurations that differ from current provider requirements.
5. Arguments that must be nested or relocated.
6. Missing required attributes.

For every issue use exactly this format:

Issue <number> - <short title>

Original snippet:
<original>

Improved snippet:
<improved, complete block ready to paste>

Explanation:
<why the change is needed, citing the documentation>

Finish with:

Summary of Improvements
- <one bullet per key change>

Rules:
- Only use resources, arguments and behavior present in the documentation below; never invent them.
- Prefer additive changes over destructive ones and flag breaking changes explicitly.
- If the documentation is ambiguous, write UNCERTAIN and explain why.
- If nothing is deprecated or misconfigured, say so.

Provider documentation:
$reference_docs

The current Terraform configuration:
$raw_configuration
""")


NEW_FEATURE_ADOPTION = Template("""\
You are an infrastructure-as-code assistant that helps upgrade a Terraform \
configuration to use newly released features of its provider.

Inputs:
1) NEW FEATURES of the provider.
2) PROVIDER DOCUMENTATION (resources, data sources, arguments, examples).
3) The CURRENT TERRAFORM CONFIGURATION.

Workflow:
1. For each new feature, give it a short identifier, summarize it in one or \
two sentences and map it to the resources, data sources and arguments in the \
documentation.
2. Inspect the configuration and classify each feature as used (Yes), not \
used (No) or partially used (Partial).
3. For every feature classified No or Partial, propose the minimal, \
backward-compatible Terraform additions that enable it, preserving the \
existing naming, tagging and module conventions.

Output format:

1) Feature Coverage Summary
   - Feature ID:
   - Used in current config?: Yes/No/Partial
   - Reasoning:

2) Proposed Terraform Changes (features with No or Partial only)
   - Feature ID:
   - Rationale:
   - Suggested change type: New resource / New data source / New arguments / Other
   - Terraform snippet (valid HCL)
   - Notes: relevant documentation entries, version requirements, risks, assumptions

3) Optional Refactoring (only clearly beneficial, low-risk changes)

Rules:
- Never invent resources, arguments or behavior that are not in the documentation.
- Prefer adding blocks or arguments over changing or removing existing ones.
- Mark any change that is not backward-compatible as BREAKING.
- If something is unclear, write UNCERTAIN and explain why.

New features:
$new_features

Provider documentation:
$reference_docs

The current Terraform configuration:
$raw_configuration
""")


RENDER_HTML = Template("""\
Turn the advisory report below into a single, self-contained HTML5 document.

Requirements:
- Complete document with <html>, <head> (meta charset UTF-8, a short <title>, \
all CSS inline in a <style> element) and <body>.
- A header with the main title and a one-line subtitle.
- An overview section, then cards or columns for the key points, plus at \
least one visual layout (timeline, step boxes or comparison table) built \
with HTML and CSS only.
- Keep every code snippet of the report, both original and improved \
versions, inside <pre><code> blocks.
- Clean layout: centered max-width container, rounded cards with subtle \
shadows, system fonts, light background, good color contrast, headings in \
order, real <ul>/<ol> lists.
- No JavaScript.

Output only the finished HTML document. Do not wrap it in code fences and do \
not add any explanation.

Advisory report:
$report_text
""")
