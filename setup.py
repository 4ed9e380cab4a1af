from setuptools import find_packages, setup

VERSION = "0.1.0"


def readme():
	with open("README.md", encoding="utf-8") as f:
		return f.read()


setup(
	name="treeserve",
	version=VERSION,
	description="Serves a directory tree over HTTP, with listings and rendered Markdown documents",
	long_description=readme(),
	long_description_content_type="text/markdown",
	packages=find_packages(where="src/py"),
	package_dir={"": "src/py"},
	classifiers=[
		"Development Status :: 4 - Beta",
		"Environment :: Console",
		"License :: OSI Approved :: MIT License",
		"Operating System :: POSIX",
		"Programming Language :: Python :: 3.11",
		"Programming Language :: Python :: 3.12",
		"Topic :: Internet :: WWW/HTTP :: HTTP Servers",
		"Topic :: Text Processing :: Markup :: Markdown",
	],
	python_requires=">=3.11",
	install_requires=["mypy-extensions", "markdown"],
	extras_require={
		"test": ["pytest"],
		"dev": ["mypy", "flake8", "bandit"],
	},
	entry_points={
		"console_scripts": ["treeserve=treeserve.cli:main"],
	},
	zip_safe=False,
)
# EOF
