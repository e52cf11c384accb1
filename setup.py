import setuptools


if __name__ == "__main__":
    setuptools.setup(
        name="git-helpers",
        version="0.1.0",
        description="git-find and git-merge-repo: helpers on top of Git's plumbing",
        packages=["githelpers"],
        python_requires=">=3.8",
        install_requires=[
            "colorama",
            "pygit2",
            "typing_extensions",
        ],
        extras_require={
            "test": [
                "py",
                "pytest",
            ],
        },
        entry_points={
            "console_scripts": [
                "githelpers=githelpers.__main__:entry_point",
                "git-find=githelpers.__main__:find_entry_point",
                "git-merge-repo=githelpers.__main__:merge_repo_entry_point",
            ],
        },
    )
