# --
# Stylesheets and icons embedded in the generated pages. `PAGE_CSS` is the
# base shell shared by listings and documents, `DOCUMENT_CSS` only applies
# within `.markdown-content`.

PAGE_CSS: str = """
:root {
	font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
	font-size: 15px;
	line-height: 1.35em;
	background: #f0f0f0;
	color: #24292e;
}

body {
	margin: 0;
	padding: 20px;
}

.border-box {
	box-sizing: border-box;
	max-width: 960px;
	margin: 0 auto;
	background: #ffffff;
	border: 1px solid #d1d5da;
	border-radius: 6px;
	overflow: hidden;
}

#header {
	margin: 0;
	padding: 16px;
	background: #f6f8fa;
	border-bottom: 1px solid #d1d5da;
	font-size: 1.1em;
	white-space: pre-wrap;
	word-break: break-all;
}

#wrapper {
	display: flex;
	flex-direction: column;
}

.content {
	display: flex;
	align-items: center;
	gap: 10px;
	padding: 8px 16px;
	border-bottom: 1px solid #eaecef;
	color: #0366d6;
	text-decoration: none;
}

.content:last-child {
	border-bottom: none;
}

.content:hover {
	background: #f6f8fa;
}

.content svg {
	flex-shrink: 0;
	width: 16px;
	height: 16px;
	fill: #79b8ff;
}

.content .text {
	margin: 0;
	overflow: hidden;
	text-overflow: ellipsis;
	white-space: nowrap;
}
"""

DOCUMENT_CSS: str = """
.markdown-content {
	max-width: 800px;
	margin: 0 auto;
	padding: 2rem;
	line-height: 1.6;
	color: #333;
}

.markdown-content h1,
.markdown-content h2,
.markdown-content h3,
.markdown-content h4,
.markdown-content h5,
.markdown-content h6 {
	margin: 1.5em 0 0.5em 0;
	font-weight: bold;
}

.markdown-content h1 {
	font-size: 2em;
	border-bottom: 2px solid #eee;
	padding-bottom: 0.3em;
}

.markdown-content h2 {
	font-size: 1.5em;
	border-bottom: 1px solid #eee;
	padding-bottom: 0.2em;
}

.markdown-content p {
	margin: 1em 0;
}

.markdown-content pre {
	background: #f6f8fa;
	border-radius: 6px;
	padding: 16px;
	overflow: auto;
	font-family: "Courier New", Courier, monospace;
}

.markdown-content code {
	background: #f6f8fa;
	padding: 0.2em 0.4em;
	border-radius: 3px;
	font-family: "Courier New", Courier, monospace;
}

.markdown-content pre code {
	background: none;
	padding: 0;
}

.markdown-content blockquote {
	border-left: 4px solid #dfe2e5;
	padding-left: 16px;
	margin: 1em 0;
	color: #6a737d;
}

.markdown-content ul,
.markdown-content ol {
	margin: 1em 0;
	padding-left: 2em;
}

.markdown-content table {
	border-collapse: collapse;
	width: 100%;
	margin: 1em 0;
}

.markdown-content th,
.markdown-content td {
	border: 1px solid #dfe2e5;
	padding: 6px 13px;
	text-align: left;
}

.markdown-content th {
	background: #f6f8fa;
	font-weight: bold;
}

.markdown-content a {
	color: #0366d6;
	text-decoration: none;
}

.markdown-content a:hover {
	text-decoration: underline;
}
"""

FOLDER_ICON: str = (
	'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16" aria-hidden="true">'
	'<path d="M1.75 1A1.75 1.75 0 0 0 0 2.75v10.5C0 14.216.784 15 1.75 15h12.5A1.75 '
	"1.75 0 0 0 16 13.25v-8.5A1.75 1.75 0 0 0 14.25 3H7.5a.25.25 0 0 1-.2-.1l-.9-1.2"
	'C6.07 1.26 5.55 1 5 1H1.75Z"/></svg>'
)

FILE_ICON: str = (
	'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16" aria-hidden="true">'
	'<path d="M2 1.75C2 .784 2.784 0 3.75 0h6.586c.464 0 .909.184 1.237.513l2.914 '
	"2.914c.329.328.513.773.513 1.237v9.586A1.75 1.75 0 0 1 13.25 16h-9.5A1.75 1.75 "
	'0 0 1 2 14.25Z"/></svg>'
)

# EOF
