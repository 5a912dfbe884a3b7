"""
A small example of the stage pipeline that filterline is built on.

Text arrives in chunks that ignore line boundaries; `split_lines` turns them
into lines and `filter_lines` keeps the ones the predicate accepts.
"""
from filterline import Pipeline, Polarity, build_predicate, filter_lines, split_lines


def main():
    """Builds and runs the pipeline."""
    # 1. Chunks cut at arbitrary positions, as a file reader would produce them
    chunks = ["INFO start", "ing\nERROR disk f", "ull\r\nINFO done\nERR", "OR again"]

    # 2. Keep the lines that start with ERROR
    predicate = build_predicate(Polarity.MATCHES, r"^ERROR")
    pipeline = Pipeline(name="errors") | split_lines() | filter_lines(predicate)

    # 3. Run the pipeline and collect the results
    results, context = pipeline.collect(chunks)

    print("--- Kept Lines ---")
    for line in results:
        print(repr(line))

    print("\n--- Final Context ---")
    print(f"lines_kept: {context.get('lines_kept')}")


if __name__ == "__main__":
    main()
