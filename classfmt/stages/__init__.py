"""Pipeline stages: classification, grouping, sorting, label relocation,
group spacing and section assembly.

Each stage exposes a small, pure function API over lists of member handles;
``classfmt.pipeline.reorganize`` chains them.
"""
